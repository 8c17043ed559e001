"""
Agent request rendering.

The persona payload is opaque: it is placed in the prompt verbatim,
followed by the concatenated content of the agent's required inputs.
"""

from dataclasses import dataclass

from handoff.domain.models import AgentDefinition, Artifact
from handoff.domain.stages import SHARED_DIR_NAME, stage_for

FEEDBACK_WRAPPER = (
    "REJECTED OUTPUT:\n{feedback}\nInstruction: Address the rejection above."
)


@dataclass(frozen=True)
class AgentRequest:
    """Everything an executor needs to run one agent once."""

    agent: AgentDefinition
    inputs: tuple[Artifact, ...] = ()  # In the agent's declared order
    project_dir: str | None = None
    preset: str = ""
    attempt: int = 1
    feedback_history: tuple[str, ...] = ()  # Feedback from failed attempts

    @property
    def output_path(self) -> str:
        return f"{SHARED_DIR_NAME}/{stage_for(self.agent.produces).filename}"

    @property
    def input_files(self) -> tuple[str, ...]:
        return tuple(a.stage.filename for a in self.inputs)

    def context(self) -> str:
        """Concatenated content of the required inputs."""
        return "\n\n".join(
            f"## {SHARED_DIR_NAME}/{a.stage.filename}\n\n{a.content}"
            for a in self.inputs
        )

    def render(self) -> str:
        """Render the full prompt text."""
        agent = self.agent
        parts = [f"# ROLE\n{agent.instructions.strip() or agent.description}"]

        if agent.must_do:
            parts.append("# MUST DO\n" + "\n".join(f"- {c}" for c in agent.must_do))
        if agent.must_not_do:
            parts.append(
                "# MUST NOT DO\n" + "\n".join(f"- {c}" for c in agent.must_not_do)
            )

        if self.inputs:
            parts.append(f"# INPUTS\n{self.context()}")

        if self.feedback_history:
            parts.append("# HISTORY")
            for i, feedback in enumerate(self.feedback_history):
                wrapped = FEEDBACK_WRAPPER.format(feedback=feedback)
                parts.append(f"--- Attempt {i + 1} ---\n{wrapped}")

        output = (
            f"# OUTPUT\nReturn the complete markdown deliverable for "
            f"{self.output_path}."
        )
        if agent.sections:
            headings = "\n".join(f"- {s}" for s in agent.sections)
            output += f"\nIt must contain these section headings:\n{headings}"
        parts.append(output)
        return "\n\n".join(parts)
