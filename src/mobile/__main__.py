"""
Headless client: one reconciliation pass against a running backend, printed.
Run: python -m mobile [card|contacts] (from repo root, with .env or env vars set).
"""
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parent.parent.parent
for path in (_REPO_ROOT / ".env", Path.cwd() / ".env"):
    if path.exists():
        load_dotenv(path)
        break

from mobile.backend import BackendClient, base_url_from_env
from mobile.reconciler import Reconciler, Screen, ViewState
from mobile.session import JsonFileSessionStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

SESSION_FILE = _REPO_ROOT / ".xscard" / "session.json"


def _print_state(state: ViewState) -> None:
    print(f"status: {state.status.value}")
    if state.display:
        d = state.display
        print(f"{d.name} | {d.title} | {d.company}")
        print(f"email: {d.email}  phone: {d.phone}")
        for link in d.social_links:
            print(f"  {link.platform}: {link.url}")
    print(f"theme: {state.theme_color}")
    print(f"qr: {'ready' if state.qr_image else 'loading'}")
    if state.contacts is not None:
        if not state.contacts:
            print("No contacts yet")
        for i, entry in enumerate(state.contacts):
            print(f"  [{i}] {entry.name} {entry.surname} {entry.number}")


async def _run(screen: Screen) -> None:
    client = BackendClient(base_url_from_env())
    try:
        reconciler = Reconciler(client, JsonFileSessionStore(SESSION_FILE))
        _print_state(await reconciler.refresh(screen))
    finally:
        await client.aclose()


def main() -> int:
    arg = sys.argv[1] if len(sys.argv) > 1 else Screen.CARD.value
    try:
        screen = Screen(arg)
    except ValueError:
        logger.error("Unknown screen %r (use card or contacts)", arg)
        return 2
    asyncio.run(_run(screen))
    return 0


if __name__ == "__main__":
    sys.exit(main())
