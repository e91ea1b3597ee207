"""Narrator: Optional read-aloud of questions and verdicts using pyttsx3."""

import logging
import threading

logger = logging.getLogger(__name__)


class Narrator:
    """Reads text aloud through pyttsx3."""

    def __init__(self, rate: int = 170, volume: float = 1.0, voice_index: int = 0):
        self.rate = rate
        self.volume = volume
        self.voice_index = voice_index
        self._engine = None
        self._lock = threading.Lock()

    def _init_engine(self):
        try:
            import pyttsx3
            self._engine = pyttsx3.init()
            self._engine.setProperty("rate", self.rate)
            self._engine.setProperty("volume", self.volume)
            voices = self._engine.getProperty("voices")
            if voices:
                if self.voice_index >= len(voices):
                    logger.warning(
                        "voice_index %d is out of range (%d voices available); using voices[0].",
                        self.voice_index, len(voices),
                    )
                    self._engine.setProperty("voice", voices[0].id)
                else:
                    self._engine.setProperty("voice", voices[self.voice_index].id)
        except Exception as e:
            logger.error(f"TTS init error: {e}")
            self._engine = None

    def speak(self, text: str):
        """Say *text*; blocks until the utterance is done."""
        if not text:
            return
        logger.debug(f"Narrating: {text[:80]}")
        with self._lock:
            try:
                # pyttsx3's event loop does not restart reliably, so every
                # utterance gets a fresh engine.
                self._init_engine()
                if self._engine is None:
                    return
                self._engine.say(text)
                self._engine.runAndWait()
            except Exception as e:
                logger.error(f"TTS speak error: {e}")
            finally:
                self._engine = None


class SilentNarrator:
    """Stand-in used when narration is disabled."""

    def speak(self, text: str):
        pass
