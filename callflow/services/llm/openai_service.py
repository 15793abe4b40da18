"""
OpenAI LLM Service
Handles chat completions for call replies and intent classification
"""

from typing import Optional, Dict, Any, List
import openai
from openai import AsyncOpenAI

from callflow.core.config import settings
from callflow.core.logging import get_logger

logger = get_logger(__name__)

INTENT_PROMPT = "Classify intent: sales, support, info, or unknown. One word only."


class OpenAIService:
    """Service for interacting with OpenAI API"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.model = settings.openai_model
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Generate a chat completion

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Optional model override
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            Result dict with ``success`` and either ``content`` or ``error``
        """
        logger.debug(f"Generating chat completion with {len(messages)} messages")

        params: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature
        }
        if max_tokens:
            params["max_tokens"] = max_tokens

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            return {
                "success": False,
                "error": f"API error: {str(e)}"
            }
        except Exception as e:
            logger.error(f"Failed to generate completion: {str(e)}")
            return {
                "success": False,
                "error": str(e)
            }

        content = response.choices[0].message.content if response.choices else None
        if not isinstance(content, str) or not content.strip():
            logger.warning("OpenAI returned an empty completion")
            return {
                "success": False,
                "error": "Empty completion"
            }

        return {
            "success": True,
            "content": content,
            "finish_reason": response.choices[0].finish_reason
        }

    async def classify_intent(self, text: str) -> Dict[str, Any]:
        """
        Classify a caller utterance into one word

        The label is the model's trimmed answer and is not coerced to one of
        the four expected words.
        """
        result = await self.chat_completion(
            messages=[
                {"role": "system", "content": INTENT_PROMPT},
                {"role": "user", "content": text}
            ],
            temperature=settings.intent_temperature,
            max_tokens=5
        )
        if result["success"]:
            result["intent"] = result["content"].strip()
        return result

    async def generate_reply(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """Next assistant utterance for the full conversation so far"""
        return await self.chat_completion(
            messages=messages,
            temperature=settings.reply_temperature
        )
