from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator

from PIL import Image

from .capture import CaptureError, decode_barcode, enhance_for_ocr, recognize_text
from .config import Config
from .extract import extract_identifier
from .http import HttpClient
from .lookup import resolve, vendor_client
from .models import NavigationIntent, ProductRecord
from .stocktrack import FetchError, fetch_stock, stock_client

logger = logging.getLogger(__name__)

MSG_NO_CODE = "No valid product code detected. Try framing the label more clearly."
MSG_NO_BARCODE = "No barcode detected. Try again or use text recognition."
MSG_NOT_FOUND = "Product not found."
MSG_FAILED = "Analysis failed. Please try again."


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    RESOLVING = "resolving"
    DISPLAYING = "displaying"
    ERROR = "error"


BUSY_STATES = frozenset({ScanState.SCANNING, ScanState.RESOLVING})

_TRANSITIONS: dict[ScanState, frozenset[ScanState]] = {
    ScanState.IDLE: frozenset({ScanState.SCANNING, ScanState.RESOLVING}),
    ScanState.SCANNING: frozenset({ScanState.RESOLVING, ScanState.ERROR}),
    ScanState.RESOLVING: frozenset({ScanState.DISPLAYING, ScanState.ERROR}),
    ScanState.DISPLAYING: frozenset({ScanState.SCANNING, ScanState.RESOLVING, ScanState.IDLE}),
    ScanState.ERROR: frozenset({ScanState.SCANNING, ScanState.RESOLVING, ScanState.IDLE}),
}


class SessionBusy(RuntimeError):
    pass


class ScanSession:
    """One user's scan-and-lookup flow, one action at a time.

    Handlers return the state the session ended in. A result is kept on the
    session until the next action: ``intent`` (navigation mode) or ``record``
    (stock mode), ``error`` holding the user-facing message otherwise.

    Usage::

        session = ScanSession(cfg)
        if session.scan_text(frame) is ScanState.DISPLAYING:
            print(session.intent.url)
    """

    def __init__(
        self,
        cfg: Config | None = None,
        *,
        stock_mode: bool = False,
        ocr_scale: float = 2.0,
        vendor: HttpClient | None = None,
        stock: HttpClient | None = None,
        recognizer: Callable[..., str] = recognize_text,
        decoder: Callable[[Image.Image], str | None] = decode_barcode,
    ):
        self.cfg = cfg or Config()
        self.stock_mode = stock_mode
        self.ocr_scale = ocr_scale
        self.vendor = vendor or vendor_client(self.cfg)
        self.stock = stock or stock_client(self.cfg)
        self.recognizer = recognizer
        self.decoder = decoder

        self.state = ScanState.IDLE
        self.error: str | None = None
        self.identifier: str | None = None
        self.detected_text: str | None = None
        self.intent: NavigationIntent | None = None
        self.record: ProductRecord | None = None

    @property
    def busy(self) -> bool:
        return self.state in BUSY_STATES

    # --- handlers -----------------------------------------------------

    def scan_text(self, image: Image.Image) -> ScanState:
        """OCR a captured frame and look up the best code in it."""
        with self._action(ScanState.SCANNING):
            frame = enhance_for_ocr(image, scale=self.ocr_scale)
            text = self.recognizer(frame, lang=self.cfg.ocr_lang)
            self._handle_text(text)
        return self.state

    def submit_text(self, text: str) -> ScanState:
        """Same as scan_text for text that was already recognized."""
        with self._action(ScanState.SCANNING):
            self._handle_text(text)
        return self.state

    def scan_barcode(self, image: Image.Image) -> ScanState:
        with self._action(ScanState.SCANNING):
            code = self.decoder(image)
            if not code:
                self._fail(MSG_NO_BARCODE)
            else:
                self._present(code)
        return self.state

    def search(self, code: str) -> ScanState:
        """Manual entry: look up *code* as typed."""
        code = (code or "").strip()
        if not code:
            return self.state
        with self._action(ScanState.RESOLVING):
            self._present(code)
        return self.state

    def show_stock(self, code: str) -> ScanState:
        code = (code or "").strip()
        if not code:
            return self.state
        with self._action(ScanState.RESOLVING):
            self._present_stock(code)
        return self.state

    def reset(self) -> None:
        if self.busy:
            raise SessionBusy(f"cannot reset while {self.state.value}")
        self._clear()
        if self.state is not ScanState.IDLE:
            self._transition(ScanState.IDLE)

    # --- internals ----------------------------------------------------

    def _handle_text(self, text: str) -> None:
        self.detected_text = text
        code = extract_identifier(text)
        if code is None:
            self._fail(MSG_NO_CODE)
            return
        self._present(code)

    def _present(self, code: str) -> None:
        if self.stock_mode:
            self._present_stock(code)
            return
        self.identifier = code
        if self.state is not ScanState.RESOLVING:
            self._transition(ScanState.RESOLVING)
        self.intent = resolve(code, client=self.vendor, lang=self.cfg.lang)
        self._transition(ScanState.DISPLAYING)

    def _present_stock(self, code: str) -> None:
        self.identifier = code
        if self.state is not ScanState.RESOLVING:
            self._transition(ScanState.RESOLVING)
        try:
            record = fetch_stock(code, client=self.stock)
        except FetchError as exc:
            self._fail(str(exc))
            return
        if record is None:
            self._fail(MSG_NOT_FOUND)
            return
        self.record = record
        self._transition(ScanState.DISPLAYING)

    def _fail(self, message: str) -> None:
        self.error = message
        self._transition(ScanState.ERROR)

    def _clear(self) -> None:
        self.error = None
        self.identifier = None
        self.detected_text = None
        self.intent = None
        self.record = None

    def _transition(self, target: ScanState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"invalid transition {self.state.value} -> {target.value}")
        logger.debug("session %s -> %s", self.state.value, target.value)
        self.state = target

    @contextmanager
    def _action(self, start: ScanState) -> Iterator[None]:
        if self.busy:
            raise SessionBusy(f"session is {self.state.value}")
        self._clear()
        self._transition(start)
        try:
            yield
        except CaptureError as exc:
            self.error = str(exc)
        except Exception:
            logger.exception("scan action failed")
            self.error = MSG_FAILED
        finally:
            # never leave the session stuck busy
            if self.busy:
                self.error = self.error or MSG_FAILED
                self._transition(ScanState.ERROR)
