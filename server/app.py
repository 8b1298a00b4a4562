from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors import DuplicateUserError, EmptyDocumentError, RentSightError
from lease_analysis.llm_client import LLMClient
from lease_analysis.pdf_pipeline import PDFAnalysisService
from lease_analysis.prompts import housing_answer_prompt
from neighborhood.maps_service import DEFAULT_RADIUS_METERS, MapsService
from neighborhood.search_service import SearchService, build_search_query
from server.config import Settings
from server.dependencies import (
    UserStore,
    get_current_user,
    get_llm_client,
    get_maps_service,
    get_pdf_service,
    get_search_service,
    get_settings,
    get_store,
)
from server.security import hash_password, issue_token, verify_password
from telemetry.logging_utils import get_logger
from telemetry.schemas import validate_search_hits

logger = get_logger(__name__)

NO_ANSWER = "No summary available"


class CredentialsPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class PromptPayload(BaseModel):
    prompt: Optional[str] = None


class RagPayload(BaseModel):
    query: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    price_min: Optional[Union[int, float, str]] = None
    price_max: Optional[Union[int, float, str]] = None
    time_range: Optional[str] = None
    additional: Optional[str] = None
    synthesize: bool = False

    def has_filters(self) -> bool:
        return any(
            (
                self.country,
                self.city,
                self.location,
                self.property_type,
                self.price_min,
                self.price_max,
                self.time_range,
                self.additional,
            )
        )


class AddressPayload(BaseModel):
    address: Optional[str] = None


class NearbySearchPayload(BaseModel):
    address: Optional[str] = None
    radius: int = DEFAULT_RADIUS_METERS
    types: Optional[List[str]] = None


app = FastAPI(title="RentSight")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RentSightError)
def handle_service_error(request: Request, exc: RentSightError) -> JSONResponse:
    logger.error(
        "request_failed",
        extra={"path": request.url.path, "error_type": type(exc).__name__, "error": str(exc)[:200]},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def _require_credentials(payload: CredentialsPayload) -> Tuple[str, str]:
    username = (payload.username or "").strip()
    password = payload.password or ""
    if not username or not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username and password are required.")
    return username, password


def _require_address(address: Optional[str]) -> str:
    cleaned = (address or "").strip()
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Address is required")
    return cleaned


def _require_user(store: UserStore, user_id: str) -> Dict[str, Any]:
    user = store.find_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


@app.get("/api/health")
def health(store: UserStore = Depends(get_store)):
    try:
        store_ok = store.ping()
    except Exception as exc:
        logger.warning("store_ping_failed", extra={"error": str(exc)[:200]})
        store_ok = False
    return {"status": "ok", "store": type(store).__name__ if store_ok else "unavailable"}


@app.post("/api/register", status_code=status.HTTP_201_CREATED)
def register_user(payload: CredentialsPayload, store: UserStore = Depends(get_store)):
    username, password = _require_credentials(payload)
    if store.find_user_by_username(username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists.")
    try:
        user = store.register_user(username, hash_password(password))
    except DuplicateUserError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists.")
    logger.info("user_registered", extra={"user_id": user["id"]})
    return {"message": "User registered successfully."}


@app.post("/api/login")
def login_user(
    payload: CredentialsPayload,
    store: UserStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    username, password = _require_credentials(payload)
    user = store.find_user_by_username(username)
    if not user or not verify_password(password, user.get("password_hash") or ""):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password.")
    token = issue_token(user["id"], user["username"], settings.jwt_secret, ttl_days=settings.token_ttl_days)
    logger.info("user_logged_in", extra={"user_id": user["id"]})
    return {"message": "Login successful.", "token": token}


@app.get("/api/profile")
def get_profile(claims: Dict[str, Any] = Depends(get_current_user), store: UserStore = Depends(get_store)):
    user = _require_user(store, claims["userId"])
    return {
        "userId": user["id"],
        "username": user["username"],
        "message": "Profile retrieved successfully",
    }


@app.post("/api/refresh-token")
def refresh_token(
    claims: Dict[str, Any] = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    user = _require_user(store, claims["userId"])
    token = issue_token(user["id"], user["username"], settings.jwt_secret, ttl_days=settings.token_ttl_days)
    return {"message": "Token refreshed successfully.", "token": token, "username": user["username"]}


@app.post("/api/search")
def search(payload: PromptPayload, llm: LLMClient = Depends(get_llm_client)):
    prompt = (payload.prompt or "").strip()
    if not prompt:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prompt is required")
    content = llm.search_query(prompt)
    return {"choices": [{"message": {"content": content}}]}


@app.post("/api/rag")
def rag_search(
    payload: RagPayload,
    search_service: SearchService = Depends(get_search_service),
    llm: LLMClient = Depends(get_llm_client),
):
    query = (payload.query or "").strip()
    if not query and payload.has_filters():
        query = build_search_query(
            country=payload.country,
            city=payload.city,
            location=payload.location,
            property_type=payload.property_type,
            price_min=payload.price_min,
            price_max=payload.price_max,
            time_range=payload.time_range,
            additional=payload.additional,
        )
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required")

    response = search_service.search(query)
    results = response["results"]
    answer = response.get("answer") or NO_ANSWER
    if payload.synthesize:
        hits = validate_search_hits(results)
        if hits:
            answer = llm.search_query(housing_answer_prompt(query, hits))
    return {
        "answer": answer,
        "results": results,
        "query": response.get("query") or query,
        "responseTime": response.get("response_time"),
    }


@app.post("/api/analyze-pdf")
def analyze_pdf(
    pdf: Optional[UploadFile] = File(None),
    pdf_service: PDFAnalysisService = Depends(get_pdf_service),
):
    if pdf is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No PDF file uploaded.")
    data = pdf.file.read()
    try:
        analysis = pdf_service.process_uploaded_pdf(data)
    except EmptyDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return analysis.to_dict()


@app.post("/api/geocode")
def geocode(payload: AddressPayload, maps: MapsService = Depends(get_maps_service)):
    address = _require_address(payload.address)
    return maps.geocode_address(address)


@app.post("/api/nearby-search")
def nearby_search(payload: NearbySearchPayload, maps: MapsService = Depends(get_maps_service)):
    address = _require_address(payload.address)
    location = maps.geocode_address(address)
    nearby_places = maps.search_multiple_types(
        location["lat"],
        location["lng"],
        payload.radius,
        payload.types,
    )
    return {"location": location, "nearbyPlaces": nearby_places}


@app.get("/api/place-details/{place_id}")
def place_details(place_id: str, maps: MapsService = Depends(get_maps_service)):
    return maps.get_place_details(place_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
