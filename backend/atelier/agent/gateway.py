"""AI content gateway.

Each operation validates a fixed input model, hands it to its agent and
returns the agent's validated artifact. Anything that goes wrong after
input validation is reported as a single :class:`GenerationFailure`.
"""
import logging

from pydantic import ValidationError

from atelier.agent.artifacts import (
    CollectionBrief,
    CollectionSuggestions,
    CompilationRequest,
    CompiledCollection,
    ImageAnalysis,
    ImageAnalysisRequest,
    ModuleCompilationInput,
)
from atelier.agent.compilation_agent import CompilationAgent
from atelier.agent.image_analysis_agent import ImageAnalysisAgent
from atelier.agent.suggestion_agent import SuggestionAgent
from atelier.errors import GenerationFailure, ValidationFailure

logger = logging.getLogger(__name__)


def _validation_failure(exc: ValidationError) -> ValidationFailure:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return ValidationFailure(field, first.get("msg", "invalid value"))


class ContentGateway:
    async def suggest_collection_metadata(
        self, name: str, price: float, description: str, target_audience: str
    ) -> CollectionSuggestions:
        try:
            brief = CollectionBrief(
                name=name, price=price, description=description, target_audience=target_audience
            )
        except ValidationError as exc:
            raise _validation_failure(exc) from exc
        try:
            return await SuggestionAgent().run(brief)
        except Exception as exc:
            logger.error("Collection suggestions failed for %r: %s", name, exc)
            raise GenerationFailure("Could not generate suggestions for this collection.") from exc

    async def analyze_image(self, image_data_uri: str) -> ImageAnalysis:
        try:
            request = ImageAnalysisRequest(image_data_uri=image_data_uri)
        except ValidationError as exc:
            raise _validation_failure(exc) from exc
        try:
            return await ImageAnalysisAgent().run(request)
        except Exception as exc:
            logger.error("Image analysis failed: %s", exc)
            raise GenerationFailure("Could not analyze this image.") from exc

    async def compile_collection(
        self,
        name: str,
        description: str,
        target_audience: str,
        modules: list[ModuleCompilationInput] | list[dict],
    ) -> CompiledCollection:
        try:
            request = CompilationRequest(
                name=name,
                description=description,
                target_audience=target_audience,
                modules=modules,
            )
        except ValidationError as exc:
            raise _validation_failure(exc) from exc
        try:
            return await CompilationAgent().run(request)
        except Exception as exc:
            logger.error("Compilation failed for %r: %s", name, exc)
            raise GenerationFailure("Could not compile this collection.") from exc
