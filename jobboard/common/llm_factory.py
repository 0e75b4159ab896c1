"""
LLM Factory Module.

Provides the factory for the chat model used by the AI scout, with a
callback that logs token usage for every call.

Usage:
    from jobboard.common.llm_factory import create_llm

    llm = create_llm(operation="scout")
    response = llm.invoke([SystemMessage(content="..."), HumanMessage(content="...")])
"""

import logging
from typing import Any, List, Optional

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult
from langchain_openai import ChatOpenAI

from jobboard.common.config import Config

logger = logging.getLogger(__name__)


class UsageLoggingCallback(BaseCallbackHandler):
    """
    LangChain callback handler that logs token usage per completed call.

    Usage:
        llm = ChatOpenAI(..., callbacks=[UsageLoggingCallback(operation="scout")])
    """

    def __init__(self, operation: Optional[str] = None):
        super().__init__()
        self.operation = operation
        self.input_tokens = 0
        self.output_tokens = 0

    def on_llm_end(self, response: LLMResult, **kwargs) -> None:
        """Accumulate and log token usage from the completed call."""
        if not response.llm_output:
            return

        usage = response.llm_output.get("token_usage", {}) or {}
        model = response.llm_output.get("model_name", "unknown")

        input_tokens = usage.get("prompt_tokens", 0) or usage.get("input_tokens", 0)
        output_tokens = usage.get("completion_tokens", 0) or usage.get("output_tokens", 0)

        self.input_tokens += input_tokens
        self.output_tokens += output_tokens

        if input_tokens or output_tokens:
            logger.info(
                f"LLM usage [{self.operation or 'llm'}]: model={model}, "
                f"input_tokens={input_tokens}, output_tokens={output_tokens}"
            )


def create_llm(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    operation: Optional[str] = None,
    additional_callbacks: Optional[List[BaseCallbackHandler]] = None,
    **kwargs: Any,
) -> ChatOpenAI:
    """
    Create a ChatOpenAI instance with usage logging.

    Args:
        model: Model name (defaults to Config.AI_MODEL)
        temperature: Temperature (defaults to Config.AI_TEMPERATURE)
        operation: Operation tag used in usage logs
        additional_callbacks: Additional callbacks to add
        **kwargs: Additional ChatOpenAI parameters

    Returns:
        ChatOpenAI instance
    """
    effective_model = model or Config.AI_MODEL
    effective_temperature = temperature if temperature is not None else Config.AI_TEMPERATURE

    callbacks: List[BaseCallbackHandler] = [UsageLoggingCallback(operation=operation)]
    if additional_callbacks:
        callbacks.extend(additional_callbacks)

    llm = ChatOpenAI(
        model=effective_model,
        temperature=effective_temperature,
        api_key=Config.OPENAI_API_KEY,
        callbacks=callbacks,
        **kwargs,
    )

    logger.debug(f"Created LLM: model={effective_model}, operation={operation}")
    return llm
