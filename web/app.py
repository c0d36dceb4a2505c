"""
FastAPI application exposing the valuation engine.

Authentication, persistence and rendering live with the calling
application; this service only values what it is sent.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from core import EligibilityResult, InvalidInput, PropertyValuationEngine
from core.comp_engine.validation import parse_request
from utils.config import Config
from utils.logging import configure_logging

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


# =============================================================================
# API Request Models
# =============================================================================

class PropertyDetailsInput(BaseModel):
    """Subject property as sent by the appraisal application."""
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    property_type: str = Field(alias="propertyType", min_length=1)
    bedrooms: Optional[float] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    land_size: Optional[float] = Field(default=None, alias="landSize", ge=0)
    floor_area: Optional[float] = Field(default=None, alias="floorArea", ge=0)
    year_built: Optional[int] = Field(default=None, alias="yearBuilt")
    address: str = ""
    suburb: str = ""
    city: str = ""


class ComparablePropertyInput(BaseModel):
    """A comparable sale; saleDate is an ISO-8601 date or timestamp."""
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    id: str = Field(min_length=1)
    property_type: str = Field(alias="propertyType", min_length=1)
    similarity_score: Optional[float] = Field(
        default=None, alias="similarityScore", ge=0, le=100
    )
    sale_price: Optional[float] = Field(default=None, alias="salePrice")
    sale_date: Optional[str] = Field(default=None, alias="saleDate")
    distance_km: Optional[float] = Field(default=None, alias="distanceKm")
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    land_size: Optional[float] = Field(default=None, alias="landSize")
    floor_area: Optional[float] = Field(default=None, alias="floorArea")
    year_built: Optional[int] = Field(default=None, alias="yearBuilt")
    address: str = ""
    suburb: str = ""
    city: str = ""


class ValuationRequestInput(BaseModel):
    """Request body for valuation and eligibility."""
    model_config = ConfigDict(populate_by_name=True)

    appraisal_id: Optional[str] = Field(default=None, alias="appraisalId")
    subject: Optional[PropertyDetailsInput] = Field(
        default=None,
        validation_alias=AliasChoices("subject", "propertyDetails"),
    )
    comparables: List[ComparablePropertyInput] = Field(
        default_factory=list,
        validation_alias=AliasChoices("comparables", "comparableProperties"),
    )

    def to_payload(self) -> dict:
        """Plain payload in the shape the engine parser reads."""
        return self.model_dump(by_alias=True)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Appraisal Valuation Engine",
        description="Comparable-sales valuation for property appraisals",
        version=API_VERSION,
        # Production settings: disable docs/redoc for private deployment
        docs_url=None if config.production else "/docs",
        redoc_url=None if config.production else "/redoc",
        openapi_url=None if config.production else "/openapi.json",
        debug=config.debug and not config.production,
    )

    # Healthchecks: synchronous, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Rejected inputs may be NaN or infinite, which JSON cannot carry back
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            {"success": False, "error": "Invalid valuation request", "detail": errors},
            status_code=422,
        )

    engine = PropertyValuationEngine(config.engine_settings())

    @app.post("/api/valuation")
    def valuation_endpoint(request_data: ValuationRequestInput):
        """
        Value a subject property against its comparable sales.

        Returns:
            - 400 with success: false if appraisalId is missing
            - 200 with the valuation envelope otherwise (success may be false)
        """
        if not request_data.appraisal_id:
            return JSONResponse(
                {"success": False, "error": "Appraisal ID is required"},
                status_code=400,
            )

        response = engine.valuate_payload(request_data.to_payload())
        return JSONResponse(response.to_dict())

    @app.post("/api/valuation/eligibility")
    def eligibility_endpoint(request_data: ValuationRequestInput):
        """Report whether a request is ready for valuation."""
        try:
            request = parse_request(request_data.to_payload())
        except InvalidInput as exc:
            return JSONResponse(EligibilityResult(eligible=False, reasons=[str(exc)]).to_dict())

        return JSONResponse(engine.check_eligibility(request).to_dict())

    @app.get("/api/health")
    def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "environment": "production" if config.production else "development",
        }

    logger.info("Valuation API configured (production=%s)", config.production)
    return app


# Create app instance for uvicorn
app = create_app()
