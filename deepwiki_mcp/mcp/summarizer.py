"""AI summary of documentation search results using LangChain"""

from typing import Any, Callable, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.models import AIModelConfigModel, MCPProviderModel

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are an expert repository documentation assistant for developers.
Answer from the documentation search results you are given. Be accurate and complete,
give practical guidance, structure the answer clearly and cite the documentation paths
you rely on."""

USER_PROMPT = """Repository: {repository}
User Question: {query}

Search Results:
{results}

=== INSTRUCTIONS ===
Analyze the search results above and answer the user's question with these sections:

1. **Executive Summary** (2-3 sentences): a direct answer and the most important conclusion.
2. **Detailed Explanation**: key concepts, configuration or implementation steps, citing
   document paths from the search results (e.g. "As documented in [path]..."). Include code
   or configuration snippets when relevant.
3. **Recommended Next Steps**: documents to read next and follow-up checks. If the results
   do not fully answer the question, say what is missing.

Synthesize across all relevant results instead of describing them one by one, and keep the
terminology of the documentation.

=== RESPONSE FORMAT ===
## Executive Summary
[Your concise summary here]

## Detailed Explanation
[Your detailed explanation here]

## Recommended Next Steps
[Your recommendations here]"""


def format_matches(matches: List[Any]) -> str:
    lines = []
    for match in matches:
        lines.append(f"- {match.title} ({match.path})")
        if match.snippet and match.snippet.strip():
            lines.append(f"  Snippet: {match.snippet}")
    return "\n".join(lines)


def build_chat_model(model_config: AIModelConfigModel) -> BaseChatModel:
    """
    Create a LangChain chat model for a stored model configuration.

    Azure OpenAI configs get the Azure client; every other provider is
    treated as an OpenAI-compatible endpoint.
    """
    provider = (model_config.provider or "openai").lower()
    if provider == "azureopenai":
        return AzureChatOpenAI(
            azure_endpoint=model_config.endpoint,
            azure_deployment=model_config.model_id,
            api_key=model_config.api_key,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            temperature=settings.SUMMARY_TEMPERATURE,
            max_tokens=settings.SUMMARY_MAX_OUTPUT_TOKENS,
        )
    return ChatOpenAI(
        model=model_config.model_id,
        api_key=model_config.api_key,
        base_url=model_config.endpoint or None,
        temperature=settings.SUMMARY_TEMPERATURE,
        max_tokens=settings.SUMMARY_MAX_OUTPUT_TOKENS,
    )


class DocSearchSummarizer:
    """
    Summarizes search matches with the model configured for MCP.

    Args:
        db_session: Async session used to resolve the model configuration
        llm_factory: Builds a chat model from a config (defaults to build_chat_model)
    """

    def __init__(
        self,
        db_session: AsyncSession,
        llm_factory: Optional[Callable[[AIModelConfigModel], BaseChatModel]] = None,
    ):
        self.db = db_session
        self.llm_factory = llm_factory or build_chat_model
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", SYSTEM_PROMPT),
            ("user", USER_PROMPT),
        ])

    async def resolve_model_config(self) -> Optional[AIModelConfigModel]:
        """
        Pick the model configuration for summaries.

        The config named by the first active provider (by sort order) wins if
        it is itself usable; otherwise the default config, then the newest one.
        """
        provider_result = await self.db.execute(
            select(MCPProviderModel.model_config_id)
            .where(
                MCPProviderModel.is_active.is_(True),
                MCPProviderModel.is_deleted.is_(False),
                MCPProviderModel.model_config_id.is_not(None),
                MCPProviderModel.model_config_id != "",
            )
            .order_by(MCPProviderModel.sort_order)
            .limit(1)
        )
        provider_model_id = provider_result.scalar_one_or_none()

        if provider_model_id:
            result = await self.db.execute(
                select(AIModelConfigModel).where(
                    AIModelConfigModel.id == provider_model_id,
                    AIModelConfigModel.is_active.is_(True),
                    AIModelConfigModel.is_deleted.is_(False),
                )
            )
            model_config = result.scalar_one_or_none()
            if model_config is not None:
                return model_config

        result = await self.db.execute(
            select(AIModelConfigModel)
            .where(
                AIModelConfigModel.is_active.is_(True),
                AIModelConfigModel.is_deleted.is_(False),
            )
            .order_by(AIModelConfigModel.is_default.desc(), AIModelConfigModel.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def summarize(
        self,
        owner: str,
        repo: str,
        query: str,
        matches: List[Any],
    ) -> Optional[str]:
        """
        Return a markdown summary of ``matches`` or None.

        None means no model is configured or the model call failed; search
        results are still returned to the client in both cases.
        """
        try:
            model_config = await self.resolve_model_config()
            if model_config is None:
                MetricsCollector.record_search_summary("skipped")
                return None

            llm = self.llm_factory(model_config)
            messages = self.prompt.format_messages(
                repository=f"{owner}/{repo}",
                query=query,
                results=format_matches(matches),
            )
            response = await llm.ainvoke(messages)
            MetricsCollector.record_search_summary("generated")
            return str(response.content).strip()

        except Exception as e:
            MetricsCollector.record_search_summary("failed")
            logger.warning(
                "mcp_search_summary_failed",
                repository=f"{owner}/{repo}",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
