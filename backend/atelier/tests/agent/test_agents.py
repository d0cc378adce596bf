import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from atelier.agent.artifacts import (
    CollectionBrief,
    CollectionSuggestions,
    CompilationRequest,
    ImageAnalysis,
    ImageAnalysisRequest,
)
from atelier.agent.compilation_agent import CompilationAgent
from atelier.agent.image_analysis_agent import ImageAnalysisAgent
from atelier.agent.suggestion_agent import SuggestionAgent

PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


def _mock_client(content: str):
    mock_message = MagicMock()
    mock_message.content = content
    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]

    mock_completions = MagicMock()
    mock_completions.create = AsyncMock(return_value=mock_response)
    mock_chat = MagicMock()
    mock_chat.completions = mock_completions
    mock_client_instance = AsyncMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance, mock_completions


@pytest.mark.asyncio
async def test_suggestion_agent():
    mock_client_instance, mock_completions = _mock_client(
        json.dumps(
            {
                "suggested_title": "Jardim Secreto",
                "improved_description": "Flores delicadas para quem ama traços finos.",
                "suggested_structure": "Módulo 1: Rosas. Módulo 2: Peônias. Módulo 3: Ramos.",
                "sales_pitch": "Transforme sua pele em um jardim.",
            }
        )
    )

    with patch("atelier.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("atelier.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            agent = SuggestionAgent()
            suggestions = await agent.run(
                CollectionBrief(name="Flores", price=49.9, description="flores", target_audience="iniciantes")
            )

    assert isinstance(suggestions, CollectionSuggestions)
    assert suggestions.suggested_title == "Jardim Secreto"
    prompt = mock_completions.create.await_args.kwargs["messages"][1]["content"]
    assert "Collection Name: Flores" in prompt
    assert "Price: 49.9" in prompt


@pytest.mark.asyncio
async def test_image_analysis_agent_normalizes_output():
    mock_client_instance, mock_completions = _mock_client(
        json.dumps(
            {
                "theme": " floral ",
                "style": "fineline",
                "suggested_name": "Rosa Eterna ",
                "description": "Uma rosa em traço fino.",
                "seo_tags": "rosa, fineline, , delicada",
                "instagram_caption": "Delicadeza que fica.",
            }
        )
    )

    with patch("atelier.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("atelier.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            analysis = await ImageAnalysisAgent().run(ImageAnalysisRequest(image_data_uri=PNG_DATA_URI))

    assert isinstance(analysis, ImageAnalysis)
    assert analysis.theme == "floral"
    assert analysis.suggested_name == "Rosa Eterna"
    assert analysis.seo_tags == ["rosa", "fineline", "delicada"]
    assert all(isinstance(tag, str) for tag in analysis.seo_tags)
    user_content = mock_completions.create.await_args.kwargs["messages"][1]["content"]
    assert user_content[1]["image_url"]["url"] == PNG_DATA_URI


@pytest.mark.asyncio
async def test_image_analysis_agent_rejects_blank_style():
    mock_client_instance, _ = _mock_client(
        json.dumps(
            {"theme": "floral", "style": "  ", "suggested_name": "Rosa", "description": "Uma rosa."}
        )
    )

    with patch("atelier.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("atelier.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            with pytest.raises(ValueError, match="style"):
                await ImageAnalysisAgent().run(ImageAnalysisRequest(image_data_uri=PNG_DATA_URI))


@pytest.mark.asyncio
async def test_compilation_agent_lists_modules_and_links():
    mock_client_instance, mock_completions = _mock_client(
        json.dumps(
            {
                "pdf_data_uri": "data:application/pdf;base64,JVBERi0=",
                "web_version_url": "https://example.com/floral",
                "mini_site_html": "<html></html>",
                "promotional_files": ["https://example.com/banner.png"],
                "marketing_copies": "Leve flores na pele.",
                "mockups_3d": [],
            }
        )
    )
    request = CompilationRequest(
        name="Floral Set",
        description="Flores",
        target_audience="iniciantes",
        modules=[
            {"name": "Capítulo 1", "sub_description": "Rosas", "images": ["https://img.example.com/1.png"]},
            {"name": "Capítulo 2", "sub_description": "Peônias", "images": [PNG_DATA_URI]},
        ],
    )

    with patch("atelier.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("atelier.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            compiled = await CompilationAgent().run(request)

    assert compiled.marketing_copies
    assert compiled.web_version_url == "https://example.com/floral"
    prompt = mock_completions.create.await_args.kwargs["messages"][1]["content"]
    assert "Module Name: Capítulo 1" in prompt
    assert "Image: https://img.example.com/1.png" in prompt
    assert PNG_DATA_URI not in prompt


@pytest.mark.asyncio
async def test_compilation_agent_rejects_empty_marketing_copies():
    mock_client_instance, _ = _mock_client(
        json.dumps(
            {
                "pdf_data_uri": "",
                "web_version_url": "https://example.com/floral",
                "mini_site_html": "",
                "marketing_copies": "   ",
            }
        )
    )

    with patch("atelier.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("atelier.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            with pytest.raises(ValueError, match="marketing"):
                await CompilationAgent().run(
                    CompilationRequest(name="x", description="y", target_audience="z")
                )
