import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .logging_config import setup_logging
from .models import (
    Ad, User, Withdrawal, CreateUserRequest, CreateWithdrawalRequest, MessageResponse,
)
from .service import RewardService, RewardServiceError, UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(responses={
    status.HTTP_400_BAD_REQUEST: {"model": MessageResponse},
    status.HTTP_404_NOT_FOUND: {"model": MessageResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": MessageResponse},
})


ID_PATTERN = re.compile(r"[0-9]+")


def parse_id(raw: str) -> Optional[int]:
    """Parse a path id of ASCII digits only; any other text resolves to None."""
    if not ID_PATTERN.fullmatch(raw):
        return None
    return int(raw)


def get_service(request: Request) -> RewardService:
    return request.app.state.service


@router.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "reward-economy"}


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED, tags=["Users"])
def create_user(
    request: CreateUserRequest,
    response: Response,
    service: RewardService = Depends(get_service),
) -> User:
    existing_user = service.get_user_by_email(request.email)
    if existing_user:
        response.status_code = status.HTTP_200_OK
        return existing_user
    return service.create_user(request)


@router.get("/users/{user_id}", response_model=User, tags=["Users"])
def get_user(user_id: str, service: RewardService = Depends(get_service)) -> User:
    parsed_id = parse_id(user_id)
    user = service.get_user(parsed_id) if parsed_id is not None else None
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/ads", response_model=list[Ad], tags=["Ads"])
def list_ads(service: RewardService = Depends(get_service)) -> list[Ad]:
    return service.get_ads()


@router.post("/watch/{user_id}/{ad_id}", response_model=User, tags=["Ads"])
def watch_ad(user_id: str, ad_id: str, service: RewardService = Depends(get_service)) -> User:
    parsed_user_id, parsed_ad_id = parse_id(user_id), parse_id(ad_id)
    user = service.get_user(parsed_user_id) if parsed_user_id is not None else None
    ad = service.get_ad(parsed_ad_id) if parsed_ad_id is not None else None
    if not user or not ad:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User or ad not found")
    return service.update_user_balance(user.id, ad.reward)


@router.post(
    "/withdraw/{user_id}",
    response_model=Withdrawal,
    status_code=status.HTTP_201_CREATED,
    tags=["Withdrawals"],
)
def create_withdrawal(
    user_id: str,
    request: CreateWithdrawalRequest,
    service: RewardService = Depends(get_service),
) -> Withdrawal:
    parsed_id = parse_id(user_id)
    try:
        if parsed_id is None:
            raise UserNotFoundError()
        return service.create_withdrawal(parsed_id, request)
    except RewardServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/withdrawals/{user_id}", response_model=list[Withdrawal], tags=["Withdrawals"])
def list_withdrawals(user_id: str, service: RewardService = Depends(get_service)) -> list[Withdrawal]:
    parsed_id = parse_id(user_id)
    if parsed_id is None:
        return []
    return service.get_user_withdrawals(parsed_id)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Detail goes to the log only, never to the client.
    logger.error(
        "Unexpected error on %s %s: %s", request.method, request.url.path, type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def create_app(
    service: Optional[RewardService] = None,
    settings: Optional[Settings] = None,
    root_path: str = "",
) -> FastAPI:
    """Build the application around ``service``, or a freshly seeded one."""
    settings = settings or get_settings()
    setup_logging("DEBUG" if settings.DEBUG else settings.LOG_LEVEL, settings.LOG_FILE)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Reward economy backend: users earn balance by watching ads and withdraw it to a wallet",
        version=settings.APP_VERSION,
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.state.service = service or RewardService()
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
