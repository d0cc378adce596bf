from atelier.agent.artifacts import ImageAnalysis, ImageAnalysisRequest
from atelier.agent.base import BaseAgent
from atelier.agent.llm_client import image_content
from atelier.agent.prompts.image_analysis import (
    IMAGE_ANALYSIS_SYSTEM_PROMPT,
    IMAGE_ANALYSIS_USER_PROMPT,
)
from atelier.core.config import settings


class ImageAnalysisAgent(BaseAgent[ImageAnalysisRequest, ImageAnalysis]):
    """
    Agent responsible for classifying a tattoo image and writing its metadata.
    """

    def __init__(self):
        super().__init__(model_name=settings.MODEL_VISION)

    async def run(self, input_data: ImageAnalysisRequest) -> ImageAnalysis:
        analysis = await self.llm.generate_structured(
            system_prompt=IMAGE_ANALYSIS_SYSTEM_PROMPT,
            user_prompt=image_content(IMAGE_ANALYSIS_USER_PROMPT, input_data.image_data_uri),
            response_schema=ImageAnalysis,
        )

        analysis.theme = analysis.theme.strip()
        analysis.style = analysis.style.strip()
        analysis.suggested_name = analysis.suggested_name.strip()
        analysis.seo_tags = [tag.strip() for tag in analysis.seo_tags if tag and tag.strip()]

        # Post-validation: the editor needs these to build a usable tattoo record.
        for field in ("theme", "style", "suggested_name"):
            if not getattr(analysis, field):
                raise ValueError(f"ImageAnalysisAgent returned an empty {field}.")
        return analysis
