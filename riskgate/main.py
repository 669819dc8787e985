"""
RiskGate FastAPI Application.

  POST /evaluate → normalize, dedupe, score and gate records; return report
  GET  /audit    → recent evaluation audit entries
  GET  /health   → {"status": "ok"}
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from riskgate.api.routes.evaluate import router as evaluate_router
from riskgate.api.routes.health import router as health_router
from riskgate.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("riskgate")

app = FastAPI(
    title="RiskGate",
    description="Change/finding aggregation and risk-gating engine",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(evaluate_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Inputs are not echoed back: records may carry secrets
    errors = [
        {k: v for k, v in err.items() if k not in ("input", "ctx")} for err in exc.errors()
    ]
    logger.error(f"Validation Error on {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": errors})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
