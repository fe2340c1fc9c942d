"""QR code encoding (PNG) using segno."""

import io

import segno

from xscard.application.ports import QrEncodingError


class SegnoQrEncoder:
    def __init__(self, *, scale: int = 10, border: int = 4) -> None:
        self._scale = scale
        self._border = border

    def encode_png(self, data: str) -> bytes:
        if not data:
            raise QrEncodingError("Nothing to encode")
        try:
            qr = segno.make(data, error="m")
            out = io.BytesIO()
            qr.save(out, kind="png", scale=self._scale, border=self._border)
        except ValueError as e:
            raise QrEncodingError(str(e)) from e
        return out.getvalue()
