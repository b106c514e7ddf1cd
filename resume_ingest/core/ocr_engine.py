"""
Tesseract OCR worker with an explicit lifecycle.

The engine is created once per owning context (the web app's lifespan, or a
single ingestion run), initialized lazily, and terminated when that context is
torn down:

    UNINITIALIZED -> INITIALIZING -> READY <-> RECOGNIZING
                                      READY -> TERMINATED -> (initialize again)

Recognition runs pytesseract in a worker thread so the event loop keeps
serving other requests. Calls on one engine are serialized, and each call
reads its parameters under the same lock, so one run's retry settings never
leak into another run's recognition.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pytesseract
from pytesseract import Output, TesseractError, TesseractNotFoundError

from resume_ingest.core.errors import OcrInitError, OcrNotReadyError, OcrPageError

logger = logging.getLogger(__name__)


class OcrState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    RECOGNIZING = "recognizing"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class OcrParameters:
    """Tesseract recognition parameters for one recognize() call."""
    page_seg_mode: int = 1  # automatic page segmentation with OSD
    engine_mode: int = 3  # default engine (LSTM when available)
    find_tables: bool = True

    def to_config(self) -> str:
        return (
            f"--oem {self.engine_mode} --psm {self.page_seg_mode} "
            f"-c textord_tabfind_find_tables={int(self.find_tables)}"
        )


DEFAULT_PARAMETERS = OcrParameters()
# Single column of text of variable sizes; table detection off
RETRY_PARAMETERS = OcrParameters(page_seg_mode=4, find_tables=False)


@dataclass(frozen=True)
class OcrRecognition:
    text: str
    confidence: float  # 0..100


def _words_from_data(data: Dict[str, List[Any]]) -> List[Tuple[Tuple[int, int, int, int], str, float]]:
    """Pull word-level rows (level 5) out of pytesseract's image_to_data dict."""
    words = []
    for i, level in enumerate(data.get("level", [])):
        if int(level) != 5:
            continue
        text = str(data["text"][i] or "")
        if not text.strip():
            continue
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1.0
        key = (
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
            int(data["word_num"][i]),
        )
        words.append((key, text, conf))
    words.sort(key=lambda w: w[0])
    return words


def recognition_from_data(data: Dict[str, List[Any]]) -> OcrRecognition:
    """
    Rebuild page text and an overall confidence from image_to_data output.

    Words are grouped into lines by (block, paragraph, line). Blocks are
    separated by a blank line. Confidence is the mean word confidence,
    ignoring tesseract's -1 placeholders.
    """
    words = _words_from_data(data)
    if not words:
        return OcrRecognition(text="", confidence=0.0)

    lines_by_key: Dict[Tuple[int, int, int], List[str]] = defaultdict(list)
    for (block, par, line, _), text, _ in words:
        lines_by_key[(block, par, line)].append(text)

    out: List[str] = []
    prev_block = None
    for (block, par, line) in sorted(lines_by_key):
        if prev_block is not None and block != prev_block:
            out.append("")
        out.append(" ".join(lines_by_key[(block, par, line)]))
        prev_block = block

    confs = [c for _, _, c in words if c >= 0]
    confidence = sum(confs) / len(confs) if confs else 0.0
    return OcrRecognition(text="\n".join(out), confidence=round(confidence, 2))


class OcrEngine:
    """Stateful, re-usable OCR worker."""

    def __init__(self, language: str = "eng", tesseract_cmd: Optional[str] = None):
        self.language = language
        self.tesseract_cmd = tesseract_cmd
        self._state = OcrState.UNINITIALIZED
        self._parameters = DEFAULT_PARAMETERS
        self._lock = asyncio.Lock()
        self.version: Optional[str] = None

    @property
    def state(self) -> OcrState:
        return self._state

    @property
    def parameters(self) -> OcrParameters:
        return self._parameters

    @property
    def is_ready(self) -> bool:
        return self._state in (OcrState.READY, OcrState.RECOGNIZING)

    def _load(self) -> str:
        """Blocking part of initialization: locate tesseract and check language data."""
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            version = str(pytesseract.get_tesseract_version())
            installed = set(pytesseract.get_languages())
        except TesseractNotFoundError as e:
            raise OcrInitError(
                "Tesseract OCR is not available. Install it and ensure it is on PATH, "
                "or set RESUME_INGEST_TESSERACT_CMD to the tesseract executable."
            ) from e
        except (OSError, TesseractError) as e:
            raise OcrInitError(f"Unable to start Tesseract: {e}") from e

        missing = [lang for lang in self.language.split("+") if lang not in installed]
        if missing:
            raise OcrInitError(f"Tesseract language data not installed: {', '.join(missing)}")
        return version

    async def initialize(self) -> None:
        """Load the engine once. A no-op when already ready."""
        if self.is_ready:
            return
        if self._state == OcrState.INITIALIZING:
            raise OcrInitError("OCR engine initialization already in progress")

        logger.info("Initializing OCR engine (language=%s)", self.language)
        self._state = OcrState.INITIALIZING
        try:
            self.version = await asyncio.to_thread(self._load)
        except BaseException:
            self._state = OcrState.UNINITIALIZED
            raise
        self._parameters = DEFAULT_PARAMETERS
        self._state = OcrState.READY
        logger.info("OCR engine ready (tesseract %s)", self.version)

    async def ensure_ready(self) -> None:
        if not self.is_ready:
            await self.initialize()

    async def set_parameters(self, parameters: OcrParameters) -> None:
        """Change the engine's default parameters. Waits for any recognition in flight."""
        async with self._lock:
            if not self.is_ready:
                raise OcrNotReadyError(f"Cannot set parameters in state {self._state.value}")
            self._parameters = parameters

    async def recognize(self, image: Any, parameters: Optional[OcrParameters] = None) -> OcrRecognition:
        """
        Recognize one page image.

        parameters apply to this call only; without them the engine's current
        parameters are used. Runs sharing one engine pass their retry settings
        here, never through set_parameters().

        Raises:
            OcrNotReadyError: the engine is not initialized or was terminated
            OcrPageError: tesseract failed on this image
        """
        async with self._lock:
            if self._state != OcrState.READY:
                raise OcrNotReadyError(f"Cannot recognize in state {self._state.value}")
            params = parameters or self._parameters
            self._state = OcrState.RECOGNIZING
            try:
                data = await asyncio.to_thread(
                    pytesseract.image_to_data,
                    image,
                    lang=self.language,
                    config=params.to_config(),
                    output_type=Output.DICT,
                )
            except (TesseractError, TesseractNotFoundError, OSError, ValueError, TypeError) as e:
                raise OcrPageError(f"Recognition failed: {e}") from e
            finally:
                if self._state == OcrState.RECOGNIZING:
                    self._state = OcrState.READY

        result = recognition_from_data(data)
        logger.debug(
            "Recognized %d chars (confidence %.1f, psm %d)",
            len(result.text), result.confidence, params.page_seg_mode,
        )
        return result

    async def terminate(self) -> None:
        """Release the engine. A later initialize() starts from scratch."""
        if self._state == OcrState.TERMINATED:
            return
        logger.info("Terminating OCR engine")
        self._state = OcrState.TERMINATED
        self._parameters = DEFAULT_PARAMETERS
        self.version = None

    async def __aenter__(self) -> "OcrEngine":
        await self.initialize()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.terminate()
