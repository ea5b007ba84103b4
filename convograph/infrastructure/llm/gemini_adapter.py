"""
Infrastructure adapter: Google Gemini (ChatGoogleGenerativeAI) -> ILanguageModel.
All langchain_google_genai details are confined here.
"""

from typing import Any, Optional

from langchain_google_genai import ChatGoogleGenerativeAI

from convograph.infrastructure.llm.langchain_adapter import LangChainChatAdapter


class GeminiChatAdapter(LangChainChatAdapter):
    """Wraps ChatGoogleGenerativeAI and exposes the ILanguageModel interface."""

    MODEL = "gemini-2.0-flash"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        callbacks: Optional[list] = None,
        _runnable: Any = None,
    ) -> None:
        if _runnable is None:
            if not api_key:
                raise ValueError("A Gemini API key is required")
            _runnable = ChatGoogleGenerativeAI(
                model=model or self.MODEL,
                google_api_key=api_key,
                temperature=temperature,
            )
        super().__init__(_runnable, callbacks=callbacks)
