"""DSPy modules producing tags and descriptions for uploaded memes."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import dspy

from ..config.config import Settings
from ..exceptions import UpstreamGenerationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class MemeTagger(ABC):
    """Generates search metadata for an image already held by the image store."""

    @abstractmethod
    async def generate_tags(self, image_url: str) -> List[str]:
        """
        Produce tags for the image.

        Raises:
            UpstreamGenerationError: If the model fails or returns nothing usable
        """

    @abstractmethod
    async def generate_description(self, image_url: str) -> str:
        """
        Produce a one-sentence description of the image.

        Raises:
            UpstreamGenerationError: If the model fails or returns nothing usable
        """


class TagMemeImage(dspy.Signature):
    """Analyze a meme image and generate tags for categorization and search.

    Focus on meme format, subject matter, emotions, visual elements, popular
    culture references and trends. Tags are lowercase single words.
    """

    image: dspy.Image = dspy.InputField(desc="The meme image")
    tags: List[str] = dspy.OutputField(desc="Up to 10 lowercase, single-word tags")


class DescribeMemeImage(dspy.Signature):
    """Describe what a meme image shows and the joke it makes, in one short sentence."""

    image: dspy.Image = dspy.InputField(desc="The meme image")
    description: str = dspy.OutputField(desc="A short description, under 500 characters")


class DSPyMemeTagger(MemeTagger):
    """Tagger backed by a DSPy vision-capable language model."""

    def __init__(self, lm: Optional[Any] = None) -> None:
        """
        Initialize the tagger.

        Args:
            lm: Language model to use; the globally configured one when None
        """
        self.lm = lm
        self.tag_image = dspy.Predict(TagMemeImage)
        self.describe_image = dspy.Predict(DescribeMemeImage)

    def _predict(self, predictor: dspy.Predict, image_url: str) -> Any:
        image = dspy.Image(url=image_url)
        if self.lm is None:
            return predictor(image=image)
        with dspy.context(lm=self.lm):
            return predictor(image=image)

    async def _run(self, predictor: dspy.Predict, image_url: str, operation: str) -> Any:
        try:
            return await asyncio.to_thread(self._predict, predictor, image_url)
        except Exception as e:
            logger.warning("meme_generation_failed", operation=operation, error=str(e))
            raise UpstreamGenerationError(
                f"Failed to generate {operation}", operation=operation, original_error=e
            ) from e

    async def generate_tags(self, image_url: str) -> List[str]:
        prediction = await self._run(self.tag_image, image_url, "tags")
        tags = [str(tag) for tag in (getattr(prediction, "tags", None) or [])]
        if not tags:
            raise UpstreamGenerationError("Model returned no tags", operation="tags")
        return tags

    async def generate_description(self, image_url: str) -> str:
        prediction = await self._run(self.describe_image, image_url, "description")
        description = str(getattr(prediction, "description", "") or "").strip()
        if not description:
            raise UpstreamGenerationError("Model returned an empty description", operation="description")
        return description


class FallbackMemeTagger(MemeTagger):
    """Used when no model is configured; every call fails so callers apply fallbacks."""

    async def generate_tags(self, image_url: str) -> List[str]:
        raise UpstreamGenerationError("No tagging model configured", operation="tags")

    async def generate_description(self, image_url: str) -> str:
        raise UpstreamGenerationError("No tagging model configured", operation="description")


def build_tagger(settings: Settings) -> MemeTagger:
    """
    Build the tagger for the current configuration.

    Args:
        settings: Application settings

    Returns:
        MemeTagger: DSPy tagger when an OpenAI key is set, else the fallback tagger
    """
    if not settings.openai_api_key:
        logger.warning("tagging_model_not_configured", reason="OPENAI_API_KEY missing")
        return FallbackMemeTagger()

    logger.info("configuring_tagging_model", model=settings.dspy_model)
    lm = dspy.LM(f"openai/{settings.dspy_model}", api_key=settings.openai_api_key)
    return DSPyMemeTagger(lm=lm)
