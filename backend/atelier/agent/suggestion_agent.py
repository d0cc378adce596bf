from atelier.agent.artifacts import CollectionBrief, CollectionSuggestions
from atelier.agent.base import BaseAgent
from atelier.agent.prompts.suggestions import SUGGESTIONS_SYSTEM_PROMPT


class SuggestionAgent(BaseAgent[CollectionBrief, CollectionSuggestions]):
    """
    Agent responsible for turning a creator's short brief into a title,
    an improved description, a module structure and a sales pitch.
    """

    async def run(self, input_data: CollectionBrief) -> CollectionSuggestions:
        prompt = (
            f"Collection Name: {input_data.name}\n"
            f"Price: {input_data.price}\n"
            f"Description: {input_data.description}\n"
            f"Target Audience: {input_data.target_audience}"
        )
        return await self.llm.generate_structured(
            system_prompt=SUGGESTIONS_SYSTEM_PROMPT,
            user_prompt=prompt,
            response_schema=CollectionSuggestions,
        )
