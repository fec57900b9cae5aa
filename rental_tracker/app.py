import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.catch_error_middleware import ErrorHandlerMiddleware
from core.exception_handler import ValidationErrorHandler
from core.lifespan import lifespan
from core.settings import settings
from routes.landlord_stats_routes import router as landlord_stats_router
from routes.maintenance_routes import router as maintenance_router
from routes.rent_payment_routes import router as rent_payment_router
from routes.rental_lease_routes import router as rental_lease_router
from routes.rental_listing_routes import router as rental_listing_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version="1.0.0",
)

app.include_router(rental_listing_router, prefix="/rentals")
app.include_router(rental_lease_router, prefix="/rentals")
app.include_router(rent_payment_router, prefix="/rentals")
app.include_router(landlord_stats_router, prefix="/rentals")
app.include_router(maintenance_router, prefix="/rentals")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok"}


app.add_exception_handler(
    RequestValidationError,
    ValidationErrorHandler(),
)

app.add_middleware(ErrorHandlerMiddleware)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8001)
