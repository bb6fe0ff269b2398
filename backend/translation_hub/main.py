import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.engine import Engine

from translation_hub.cache import build_translation_cache
from translation_hub.config import Settings, settings as default_settings
from translation_hub.database import build_session_factory, engine as default_engine
from translation_hub.errors import (
    DuplicateTranslationError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    TranslationNotFoundError,
    ValidationError,
)
from translation_hub.logging_config import configure_logging
from translation_hub.models import TranslationPage, UserModel
from translation_hub.schemas import (
    LoginRequest,
    RegisterRequest,
    StoreTranslationRequest,
    UpdateTranslationRequest,
)
from translation_hub.services import AuthResult, AuthService, TranslationService
from translation_hub.tables import metadata

logger = logging.getLogger(__name__)
security_scheme = HTTPBearer(auto_error=False)


def _success(data: Any, message: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


def _page_payload(page: TranslationPage) -> dict[str, Any]:
    return page.model_dump(mode="json")


def _auth_payload(result: AuthResult) -> dict[str, Any]:
    return {
        "user": result.user.model_dump(mode="json"),
        "access_token": result.access_token,
        "token_type": result.token_type,
    }


def get_translation_service(request: Request) -> TranslationService:
    return request.app.state.translation_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> UserModel:
    if credentials is None:
        raise InvalidCredentialsError()
    return auth.authenticate(credentials.credentials)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TranslationNotFoundError)
    async def _not_found(request: Request, exc: TranslationNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(DuplicateTranslationError)
    async def _duplicate(request: Request, exc: DuplicateTranslationError) -> JSONResponse:
        logger.info(
            "Rejected duplicate translation key=%s locale=%s", exc.key, exc.locale
        )
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(EmailAlreadyRegisteredError)
    async def _email_taken(request: Request, exc: EmailAlreadyRegisteredError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ValidationError)
    async def _validation(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(InvalidCredentialsError)
    async def _credentials(request: Request, exc: InvalidCredentialsError) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, message)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/register", status_code=status.HTTP_201_CREATED)
    def register(
        payload: RegisterRequest,
        auth: AuthService = Depends(get_auth_service),
    ) -> dict[str, Any]:
        result = auth.register(
            name=payload.name, email=payload.email, password=payload.password
        )
        return _success(_auth_payload(result), "User registered successfully")

    @app.post("/api/login")
    def login(
        payload: LoginRequest,
        auth: AuthService = Depends(get_auth_service),
    ) -> dict[str, Any]:
        result = auth.login(email=payload.email, password=payload.password)
        return _success(_auth_payload(result), "Login successful")

    @app.post("/api/logout")
    def logout(
        user: UserModel = Depends(get_current_user),
        auth: AuthService = Depends(get_auth_service),
    ) -> dict[str, Any]:
        auth.logout(user.id)
        return _success(None, "Successfully logged out")

    @app.get("/api/translations/search/tags/{tag}")
    def search_by_tag(
        tag: str,
        locale: Optional[str] = Query(None),
        limit: Optional[int] = Query(None, ge=1),
        offset: Optional[int] = Query(None, ge=0),
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        return _success(_page_payload(service.search_by_tag(tag, locale, limit, offset)))

    @app.get("/api/translations/search/keys/{key}")
    def search_by_key(
        key: str,
        locale: Optional[str] = Query(None),
        limit: Optional[int] = Query(None, ge=1),
        offset: Optional[int] = Query(None, ge=0),
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        return _success(_page_payload(service.search_by_key(key, locale, limit, offset)))

    @app.get("/api/translations/search/content/{content}")
    def search_by_content(
        content: str,
        locale: Optional[str] = Query(None),
        limit: Optional[int] = Query(None, ge=1),
        offset: Optional[int] = Query(None, ge=0),
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        return _success(
            _page_payload(service.search_by_content(content, locale, limit, offset))
        )

    @app.get("/api/translations/export")
    @app.get("/api/translations/export/{locale}")
    def export_translations(
        locale: Optional[str] = None,
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, str]:
        return service.export(locale)

    @app.get("/api/translations")
    def list_translations(
        locale: Optional[str] = Query(None),
        limit: Optional[int] = Query(None, ge=1),
        offset: Optional[int] = Query(None, ge=0),
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        return _success(_page_payload(service.list(locale, limit, offset)))

    @app.post("/api/translations", status_code=status.HTTP_201_CREATED)
    def store_translation(
        payload: StoreTranslationRequest,
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        translation = service.create(
            key=payload.key,
            value=payload.value,
            locale=payload.locale,
            tags=payload.tags,
        )
        return _success(
            translation.model_dump(mode="json"), "Translation created successfully"
        )

    @app.get("/api/translations/{translation_id}")
    def show_translation(
        translation_id: int,
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        return _success(service.get(translation_id).model_dump(mode="json"))

    @app.put("/api/translations/{translation_id}")
    def update_translation(
        translation_id: int,
        payload: UpdateTranslationRequest,
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        translation = service.update(
            translation_id, value=payload.value, tags=payload.tags
        )
        return _success(
            translation.model_dump(mode="json"), "Translation updated successfully"
        )

    @app.delete("/api/translations/{translation_id}")
    def destroy_translation(
        translation_id: int,
        _: UserModel = Depends(get_current_user),
        service: TranslationService = Depends(get_translation_service),
    ) -> dict[str, Any]:
        service.delete(translation_id)
        return _success(None, "Translation deleted successfully")


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    settings = settings or default_settings
    engine = engine or default_engine
    session_factory = build_session_factory(engine)

    app = FastAPI(title="Translation Hub API")
    app.state.settings = settings
    app.state.translation_service = TranslationService(
        session_factory,
        build_translation_cache(
            enabled=settings.cache_enabled,
            list_ttl_minutes=settings.cache_list_ttl_minutes,
            search_ttl_minutes=settings.cache_search_ttl_minutes,
            export_ttl_minutes=settings.cache_export_ttl_minutes,
        ),
        default_locale=settings.default_locale,
    )
    app.state.auth_service = AuthService(session_factory, settings)

    @app.on_event("startup")
    def on_startup() -> None:
        configure_logging(settings)
        metadata.create_all(bind=engine)
        if settings.jwt_secret_key == "change-me":
            logger.warning(
                "TRANSLATION_HUB_JWT_SECRET_KEY is the default value; set a secure secret."
            )
        logger.info(
            "Translation Hub started default_locale=%s cache_enabled=%s",
            settings.default_locale,
            settings.cache_enabled,
        )

    cors_origins = list(settings.cors_origins or [])
    allow_all_origins = "*" in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all_origins else cors_origins,
        allow_credentials=not allow_all_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)
    _register_routes(app)
    return app


app = create_app()
