"""
Speech Synthesis Service
Turns reply text into mp3 files served from the audio directory
"""

import asyncio
import re
from pathlib import Path
from typing import Optional, Dict, Any

import openai
from openai import AsyncOpenAI

from callflow.core.config import settings
from callflow.core.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


class SpeechService:
    """Text-to-speech through the OpenAI audio API"""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        audio_dir: Optional[str] = None
    ):
        self.model = settings.openai_tts_model
        self.voice = settings.openai_tts_voice
        self.audio_dir = Path(audio_dir or settings.audio_dir)
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def synthesize(self, text: str, name: str) -> Dict[str, Any]:
        """
        Synthesize ``text`` into ``<audio_dir>/<name>.mp3``

        Args:
            text: Text to speak
            name: File stem, sanitized before use

        Returns:
            Result dict with ``success`` and ``audio_ref`` (the file name)
        """
        filename = f"{_safe_name(name)}.mp3"

        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
                response_format="mp3"
            )
            await asyncio.to_thread((self.audio_dir / filename).write_bytes, response.content)
        except openai.APIError as e:
            logger.error(f"OpenAI TTS error: {str(e)}")
            return {
                "success": False,
                "error": f"API error: {str(e)}"
            }
        except Exception as e:
            logger.error(f"Failed to synthesize speech: {str(e)}")
            return {
                "success": False,
                "error": str(e)
            }

        logger.debug(f"Synthesized {len(text)} chars to {filename}")
        return {
            "success": True,
            "audio_ref": filename
        }

    async def remove_call_audio(self, call_id: str) -> int:
        """
        Delete every audio file synthesized for a call

        Files are named ``<call_id>-<suffix>.mp3``. Called once the call has
        ended, when Twilio no longer fetches them.

        Returns:
            Number of files removed
        """
        return await asyncio.to_thread(self._remove_matching, f"{_safe_name(call_id)}-*.mp3")

    def _remove_matching(self, pattern: str) -> int:
        removed = 0
        for path in self.audio_dir.glob(pattern):
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not remove audio file {path.name}: {e}")
        return removed
