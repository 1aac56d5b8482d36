"""Base class for sifter agents that analyze audited content.

Sifters turn content into structured findings:
- ClaimExtractor: content -> Claim objects
- VerificationJudge: Claims -> VerificationResult verdicts

All sifters inherit from this base class and implement the sift() method.
"""

from abc import abstractmethod

from eval_agent.agents.base_agent import BaseAgent


class BaseSifter(BaseAgent):
    """
    Abstract base for sifter agents.

    The process() method routes to the abstract sift() method, which
    subclasses must implement, and tracks success/error counts.

    Attributes:
        processed_count: Number of successfully processed items.
        error_count: Number of failed processing attempts.
    """

    def __init__(self, name: str, description: str = ""):
        super().__init__(name=name, description=description)
        self.processed_count: int = 0
        self.error_count: int = 0

    @abstractmethod
    async def sift(self, content: dict) -> list[dict]:
        """
        Process content and extract structured output.

        Args:
            content: Raw content dict. Expected keys vary by sifter type:
                - ClaimExtractor: 'object' + 'locator_prefix', or 'text' + 'context'
                - VerificationJudge: 'claims', 'sources'

        Returns:
            List of extracted items as dicts.
        """
        pass

    async def process(self, input_data: dict) -> dict:
        """
        BaseAgent.process implementation routing to sift().

        Args:
            input_data: Dict with 'content' key containing data to process.

        Returns:
            Dict with:
                - success: bool
                - results: list of extracted items
                - count: number of items extracted
                - error: error message if failed
        """
        try:
            results = await self.sift(input_data.get("content", {}))
            self.processed_count += 1
            return {
                "success": True,
                "results": results,
                "count": len(results),
            }
        except Exception as e:
            self.error_count += 1
            self.logger.error(f"Sift failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e),
                "results": [],
            }

    def get_capabilities(self) -> list[str]:
        return ["sifting", "analysis"]

    def get_stats(self) -> dict:
        """
        Return processing statistics.

        Returns:
            Dict with processed_count, error_count, and error_rate.
        """
        total = self.processed_count + self.error_count
        error_rate = self.error_count / total if total > 0 else 0.0
        return {
            "processed_count": self.processed_count,
            "error_count": self.error_count,
            "error_rate": error_rate,
        }
