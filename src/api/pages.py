"""HTML for the public save-contact page a scanned QR code opens."""

from html import escape

_STYLE = """
body { font-family: sans-serif; max-width: 28rem; margin: 2rem auto; padding: 0 1rem; }
header { border-bottom: 4px solid %(color)s; margin-bottom: 1rem; }
label { display: block; margin-top: .75rem; }
input { width: 100%%; padding: .5rem; box-sizing: border-box; }
button { margin-top: 1rem; padding: .6rem 1.2rem; background: %(color)s; color: #fff; border: 0; }
"""


def _page(title: str, body: str, color: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">"
        f"<title>{escape(title)}</title><style>{_STYLE % {'color': color}}</style>"
        f"</head><body>{body}</body></html>"
    )


def save_contact_form(
    user_id: str, owner_name: str, color: str, error: str | None = None
) -> str:
    """Form posting name, surname, phone and howWeMet back to /saveContact."""
    notice = f"<p role=\"alert\">{escape(error)}</p>" if error else ""
    body = (
        f"<header><h1>{escape(owner_name)}</h1></header>"
        f"<p>Share your details with {escape(owner_name)}.</p>{notice}"
        "<form method=\"post\" action=\"/saveContact\">"
        f"<input type=\"hidden\" name=\"userId\" value=\"{escape(user_id)}\">"
        "<label>Name <input name=\"name\" required></label>"
        "<label>Surname <input name=\"surname\"></label>"
        "<label>Phone <input name=\"phone\" type=\"tel\"></label>"
        "<label>How we met <input name=\"howWeMet\"></label>"
        "<button type=\"submit\">Save</button>"
        "</form>"
    )
    return _page(f"Save contact for {owner_name}", body, color)


def message_page(title: str, message: str, color: str) -> str:
    body = f"<header><h1>{escape(title)}</h1></header><p>{escape(message)}</p>"
    return _page(title, body, color)
