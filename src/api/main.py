"""
FastAPI backend: users, cards, contact lists, QR codes and wallet passes.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import secrets
import time
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Body, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from neo4j import GraphDatabase
from pydantic import BaseModel, ConfigDict

from api import pages
from api.settings import Settings
from xscard.application import (
    CardDetails,
    Conflict,
    ContactInfo,
    ContactService,
    DirectoryService,
    DocumentStore,
    IndexOutOfRange,
    Invalid,
    NewUser,
    NotFound,
    NotificationDispatcher,
    PartialSuccess,
    ProviderFailure,
    QrEncoder,
    SharingService,
    UpstreamFailure,
    WalletPassProvider,
)
from xscard.application.documents import (
    SOCIAL_KEYS,
    card_to_json,
    contact_list_to_json,
    entry_to_dict,
    user_to_json,
)
from xscard.domain import DEFAULT_COLOR_SCHEME
from xscard.infrastructure import (
    InMemoryDocumentStore,
    Neo4jDocumentStore,
    PassCreatorClient,
    Pbkdf2PasswordHasher,
    SegnoQrEncoder,
    SmtpNotificationDispatcher,
    SmtpSettings,
    ensure_document_constraint,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

PROFILES_DIR = "profiles"
_IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


@dataclass
class Services:
    contacts: ContactService
    directory: DirectoryService
    sharing: SharingService
    media_dir: Path


def _get_driver(settings: Settings):
    return GraphDatabase.driver(
        settings.neo4j_uri, auth=(settings.neo4j_user, settings.neo4j_password)
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def _failure(result: Any) -> JSONResponse:
    """Map a failure result to its HTTP response."""
    if isinstance(result, Invalid):
        return JSONResponse(status_code=400, content={"message": result.reason})
    if isinstance(result, IndexOutOfRange):
        return JSONResponse(
            status_code=400,
            content={
                "message": "Contact index out of range",
                "index": result.index,
                "length": result.length,
            },
        )
    if isinstance(result, NotFound):
        return JSONResponse(status_code=404, content={"message": result.message})
    if isinstance(result, Conflict):
        return JSONResponse(status_code=409, content={"message": result.reason})
    if isinstance(result, ProviderFailure):
        return JSONResponse(
            status_code=502, content={"message": result.message, "error": result.error}
        )
    if isinstance(result, UpstreamFailure):
        return JSONResponse(
            status_code=500, content={"message": result.message, "error": result.error}
        )
    logger.error("Unexpected service result: %r", result)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


_FAILURES = (Invalid, IndexOutOfRange, NotFound, Conflict, ProviderFailure, UpstreamFailure)


# --- request bodies ---


class ContactInfoBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    surname: str | None = None
    phone: str | None = None
    number: str | None = None
    howWeMet: str | None = None

    def to_info(self) -> ContactInfo:
        return ContactInfo(
            name=self.name or "",
            surname=self.surname or "",
            phone=self.phone or self.number or "",
            how_we_met=self.howWeMet or "",
        )


class SaveContactBody(BaseModel):
    userId: str | None = None
    contactInfo: ContactInfoBody | None = None


class UpdateContactsBody(BaseModel):
    contactInfo: ContactInfoBody | None = None


class AddUserBody(BaseModel):
    name: str = ""
    surname: str = ""
    email: str = ""
    password: str = ""
    phone: str = ""
    occupation: str = ""
    company: str = ""
    colorScheme: str | None = None
    whatsapp: str | None = None
    x: str | None = None
    facebook: str | None = None
    linkedin: str | None = None
    website: str | None = None
    tiktok: str | None = None
    instagram: str | None = None


class SignInBody(BaseModel):
    email: str = ""
    password: str = ""


class ColorBody(BaseModel):
    colorScheme: str = ""


class SocialLinkBody(BaseModel):
    platform: str
    url: str


class AddCardBody(BaseModel):
    userId: str = ""
    Company: str = ""
    Email: str = ""
    PhoneNumber: str = ""
    title: str = ""
    socialLinks: list[SocialLinkBody] = []


router = APIRouter()


# --- REST: health ---


@router.get("/health")
def health():
    return {"status": "ok"}


# --- REST: contacts ---


@router.get("/Contacts")
def get_all_contacts(request: Request):
    result = _services(request).contacts.list_all()
    if isinstance(result, _FAILURES):
        return _failure(result)
    if not result:
        return JSONResponse(status_code=404, content={"message": "No contacts found"})
    return [contact_list_to_json(d) for d in result]


@router.get("/Contacts/{list_id}")
def get_contact_list(list_id: str, request: Request):
    result = _services(request).contacts.get_list(list_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return contact_list_to_json(result)


@router.post("/AddContact")
def add_contact(body: SaveContactBody, request: Request):
    info = body.contactInfo.to_info() if body.contactInfo else None
    result = _services(request).contacts.create_list(body.userId or "", info)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return JSONResponse(
        status_code=201,
        content={
            "message": "Contact list created successfully",
            "contactId": result.list_id,
            "contactData": contact_list_to_json(result.document),
        },
    )


@router.post("/saveContactInfo")
def save_contact_info(body: SaveContactBody, request: Request):
    info = body.contactInfo.to_info() if body.contactInfo else None
    result = _services(request).contacts.save_contact(body.userId or "", info)
    if isinstance(result, _FAILURES):
        return _failure(result)
    content = {
        "message": "Contact saved successfully",
        "emailSent": True,
        "contactId": result.list_id,
        "contact": entry_to_dict(result.entry),
    }
    if isinstance(result, PartialSuccess):
        content.update(message=result.message, emailSent=False, error=result.error)
    return content


@router.patch("/Contacts/{list_id}")
def update_contacts(list_id: str, body: UpdateContactsBody, request: Request):
    info = body.contactInfo.to_info() if body.contactInfo else None
    result = _services(request).contacts.append_contact(list_id, info)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {
        "message": "Contact list updated successfully",
        "updatedContacts": [entry_to_dict(e) for e in result.document.entries],
    }


@router.delete("/Contacts/{list_id}")
def delete_contact_list(list_id: str, request: Request):
    result = _services(request).contacts.delete_list(list_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Contact list deleted successfully", "deletedContactId": result.list_id}


@router.delete("/Contacts/{list_id}/contact/{index}")
def delete_contact_at(list_id: str, index: str, request: Request):
    result = _services(request).contacts.delete_at(list_id, index)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Contact deleted successfully", "remainingContacts": result.remaining}


@router.delete("/Contacts/{list_id}/entries/{entry_id}")
def delete_contact_entry(list_id: str, entry_id: str, request: Request):
    result = _services(request).contacts.delete_entry(list_id, entry_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Contact deleted successfully", "remainingContacts": result.remaining}


# --- REST: users ---


@router.post("/AddUser")
def add_user(body: AddUserBody, request: Request):
    socials = body.model_dump(include=set(SOCIAL_KEYS))
    result = _services(request).directory.add_user(
        NewUser(
            name=body.name,
            surname=body.surname,
            email=body.email,
            password=body.password,
            phone=body.phone,
            occupation=body.occupation,
            company=body.company,
            color_scheme=body.colorScheme,
            socials=socials,
        )
    )
    if isinstance(result, _FAILURES):
        return _failure(result)
    return JSONResponse(
        status_code=201,
        content={
            "message": "User added successfully",
            "userId": result.user.id,
            "user": user_to_json(result.user),
        },
    )


@router.post("/SignIn")
def sign_in(body: SignInBody, request: Request):
    result = _services(request).directory.sign_in(body.email, body.password)
    if isinstance(result, Invalid):
        return JSONResponse(status_code=401, content={"message": result.reason})
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Sign in successful", "user": user_to_json(result.user)}


@router.get("/Users")
def get_users(request: Request):
    result = _services(request).directory.list_users()
    if isinstance(result, _FAILURES):
        return _failure(result)
    return [user_to_json(u) for u in result]


@router.get("/Users/{user_id}")
def get_user(user_id: str, request: Request):
    result = _services(request).directory.get_user(user_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return user_to_json(result)


@router.patch("/UpdateUser/{user_id}")
def update_user(user_id: str, request: Request, changes: dict[str, Any] = Body(...)):
    result = _services(request).directory.update_user(user_id, changes)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "User updated successfully", "user": user_to_json(result)}


@router.delete("/Users/{user_id}")
def delete_user(user_id: str, request: Request):
    result = _services(request).directory.delete_user(user_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "User deleted successfully", "deletedUserId": result.id}


def _store_upload(services: Services, upload: UploadFile, save) -> Any:
    """Write an image under media/profiles and record its path with save(path).
    The file is removed again when save returns a failure."""
    suffix = Path(upload.filename or "").suffix.lower()
    if suffix not in _IMAGE_SUFFIXES:
        return JSONResponse(status_code=400, content={"message": "Unsupported image type"})
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{suffix}"
    target = services.media_dir / PROFILES_DIR / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(upload.file.read())
    result = save(f"{PROFILES_DIR}/{filename}")
    if isinstance(result, _FAILURES):
        target.unlink(missing_ok=True)
        return _failure(result)
    return result


@router.patch("/Users/{user_id}/profile-image")
def update_profile_image(user_id: str, request: Request, profileImage: UploadFile = File(...)):
    services = _services(request)
    result = _store_upload(
        services, profileImage, lambda path: services.directory.set_profile_image(user_id, path)
    )
    if isinstance(result, JSONResponse):
        return result
    return {"message": "Profile image updated successfully", "profileImage": result.profile_image}


@router.patch("/Users/{user_id}/company-logo")
def update_company_logo(user_id: str, request: Request, companyLogo: UploadFile = File(...)):
    services = _services(request)
    result = _store_upload(
        services, companyLogo, lambda path: services.directory.set_company_logo(user_id, path)
    )
    if isinstance(result, JSONResponse):
        return result
    return {"message": "Company logo updated successfully", "companyLogo": result.company_logo}


@router.patch("/Users/{user_id}/color")
def update_user_color(user_id: str, body: ColorBody, request: Request):
    result = _services(request).directory.set_color(user_id, body.colorScheme)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Color updated successfully", "colorScheme": result.color_scheme}


# --- REST: cards ---


@router.get("/Cards")
def get_cards(request: Request):
    result = _services(request).directory.list_cards()
    if isinstance(result, _FAILURES):
        return _failure(result)
    return [card_to_json(c) for c in result]


@router.get("/Cards/{card_id}")
def get_card(card_id: str, request: Request):
    result = _services(request).directory.get_card(card_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return card_to_json(result)


@router.post("/AddCard")
def add_card(body: AddCardBody, request: Request):
    details = CardDetails(
        company=body.Company,
        email=body.Email,
        phone_number=body.PhoneNumber,
        title=body.title,
        social_links=tuple((s.platform, s.url) for s in body.socialLinks),
    )
    result = _services(request).directory.add_card(body.userId, details)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return JSONResponse(
        status_code=201,
        content={"message": "Card added successfully", "card": card_to_json(result.card)},
    )


@router.patch("/Cards/{card_id}")
def update_card(card_id: str, request: Request, changes: dict[str, Any] = Body(...)):
    result = _services(request).directory.update_card(card_id, changes)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Card updated successfully", "card": card_to_json(result.card)}


@router.delete("/Cards/{card_id}")
def delete_card(card_id: str, request: Request):
    result = _services(request).directory.delete_card(card_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Card deleted successfully", "deletedCardId": result.id}


@router.get("/generateQR/{user_id}")
def generate_qr(user_id: str, request: Request):
    result = _services(request).sharing.qr_for_user(user_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return Response(content=result.png, media_type="image/png")


# --- public save-contact page (QR target) ---


def _page_failure(result: Any) -> HTMLResponse:
    if isinstance(result, NotFound):
        html = pages.message_page(
            "Card not found", "This card link is not valid.", DEFAULT_COLOR_SCHEME
        )
        return HTMLResponse(html, status_code=404)
    logger.error("Save-contact page failed: %r", result)
    html = pages.message_page(
        "Something went wrong", "Please try again later.", DEFAULT_COLOR_SCHEME
    )
    return HTMLResponse(html, status_code=500)


@router.get("/saveContact", response_class=HTMLResponse)
def save_contact_page(request: Request, userId: str = ""):
    owner = _services(request).directory.get_user(userId.strip())
    if isinstance(owner, _FAILURES):
        return _page_failure(owner)
    return HTMLResponse(
        pages.save_contact_form(owner.id, owner.display_name, owner.color_scheme)
    )


@router.post("/saveContact", response_class=HTMLResponse)
def submit_save_contact_page(
    request: Request,
    userId: str = Form(""),
    name: str = Form(""),
    surname: str = Form(""),
    phone: str = Form(""),
    howWeMet: str = Form(""),
):
    services = _services(request)
    owner = services.directory.get_user(userId.strip())
    if isinstance(owner, _FAILURES):
        return _page_failure(owner)
    info = ContactInfo(name=name, surname=surname, phone=phone, how_we_met=howWeMet)
    result = services.contacts.save_contact(owner.id, info)
    if isinstance(result, Invalid):
        html = pages.save_contact_form(
            owner.id, owner.display_name, owner.color_scheme, error=result.reason
        )
        return HTMLResponse(html, status_code=400)
    if isinstance(result, _FAILURES):
        return _page_failure(result)
    return HTMLResponse(
        pages.message_page(
            "Contact saved",
            f"{owner.display_name} now has your details.",
            owner.color_scheme,
        )
    )


# --- wallet passes ---


@router.post("/wallet/{user_id}")
def create_wallet_pass(user_id: str, request: Request):
    sharing = _services(request).sharing
    if not sharing.wallet_enabled:
        return JSONResponse(
            status_code=503, content={"message": "Wallet passes are not configured"}
        )
    result = sharing.create_wallet_pass(user_id)
    if isinstance(result, _FAILURES):
        return _failure(result)
    return {"message": "Wallet pass created", "pass": result.response}


# --- app factory ---


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    notifier: NotificationDispatcher | None = None,
    encoder: QrEncoder | None = None,
    wallet: WalletPassProvider | None = None,
) -> FastAPI:
    """Wire services from settings. Any collaborator passed in replaces the configured one."""
    settings = settings or Settings.from_env()
    driver = None
    if store is None:
        if settings.store_backend == "neo4j":
            driver = _get_driver(settings)
            store = Neo4jDocumentStore(driver)
        else:
            store = InMemoryDocumentStore()
    if notifier is None:
        notifier = SmtpNotificationDispatcher(
            SmtpSettings(
                host=settings.email_host,
                port=settings.email_port,
                user=settings.email_user,
                password=settings.email_password,
                from_name=settings.email_from_name,
                from_address=settings.email_from_address,
            )
        )
    if wallet is None and settings.wallet_configured:
        wallet = PassCreatorClient(
            settings.passcreator_api_key,
            settings.passcreator_template_id,
            public_url=settings.passcreator_public_url,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Document store: %s", type(store).__name__)
        (settings.media_dir / PROFILES_DIR).mkdir(parents=True, exist_ok=True)
        try:
            if driver is not None:
                ensure_document_constraint(driver)
            yield
        finally:
            if driver is not None:
                driver.close()

    app = FastAPI(title="XS Card API", lifespan=lifespan)
    app.state.services = Services(
        contacts=ContactService(store, notifier),
        directory=DirectoryService(store, Pbkdf2PasswordHasher()),
        sharing=SharingService(
            store,
            encoder or SegnoQrEncoder(),
            card_base_url=settings.card_public_url,
            wallet=wallet,
        ),
        media_dir=settings.media_dir,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400, content={"message": "Invalid request body", "error": str(exc)}
        )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content={"message": "Internal Server Error", "error": str(exc)}
        )

    app.include_router(router)
    app.mount(
        f"/{PROFILES_DIR}",
        StaticFiles(directory=settings.media_dir / PROFILES_DIR, check_dir=False),
        name=PROFILES_DIR,
    )
    return app


app = create_app()
