from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ModerationResult:
	"""Outcome of a content-policy classification.

	Attributes:
		flagged: Whether the text violates the provider's content policy.
		categories: Names of the categories that were flagged.
	"""

	flagged: bool
	categories: list[str] = field(default_factory=list)


class AbstractLLMClient(ABC):
	"""Interface for upstream language-model clients."""

	@abstractmethod
	async def moderate(self, text: str) -> ModerationResult:
		"""Classify text against the provider's content policy.

		Raises:
			LLMAppError: If the provider call fails.
			UpstreamTimeoutAppError: If the call times out.
		"""
		...

	@abstractmethod
	async def complete(self, text: str, *, instructions: str) -> str:
		"""Generate a text answer for the given input.

		Args:
			text: User input.
			instructions: System-level instruction constraining the answer.

		Returns:
			str: Generated text (may be empty).

		Raises:
			LLMAppError: If the provider call fails or does not complete.
			UpstreamTimeoutAppError: If the call times out.
		"""
		...
