import base64
import io

import qrcode


def make_qr_data_url(text: str, box_size: int = 6, border: int = 1) -> str:
    """PNG QR code for `text` as a data: URL."""
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{b64}"


def decode_data_url(data_url: str) -> bytes:
    """Raw bytes of a base64 data: URL."""
    _, _, payload = data_url.partition(",")
    return base64.b64decode(payload)
