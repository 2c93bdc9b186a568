"""
API FastAPI principale
======================

Point d'entrée de l'API REST.

Usage:
    uvicorn adaptive_miner.api.main:app --reload --port 8000
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Any
from datetime import datetime

from adaptive_miner import __version__
from adaptive_miner.process_mining.adaptive import SELECTION_POLICIES
from adaptive_miner.process_mining.config import (
    DEFAULT_BASE_CASES,
    DEFAULT_CUT_FINDERS,
    DEFAULT_FALL_THROUGHS,
    DEFAULT_NOISE_THRESHOLDS,
    DEFAULT_POST_PROCESSORS,
    available_strategies,
)
from adaptive_miner.process_mining.discovery import discover_adaptive
from adaptive_miner.process_mining.log import Log
from adaptive_miner.utils.logging import get_logger

logger = get_logger(__name__)

# Création de l'app
app = FastAPI(
    title="Adaptive Miner API",
    description="API de découverte inductive de process trees à seuil de bruit adaptatif",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Schémas Pydantic
class DiscoveryRequest(BaseModel):
    """Log et configuration de découverte."""
    traces: List[List[str]] = Field(..., description="Traces, chacune une liste d'activités")
    thresholds: List[float] = Field(
        default_factory=lambda: list(DEFAULT_NOISE_THRESHOLDS),
        description="Seuils de bruit candidats (0-1)"
    )
    selection: str = Field(
        default="lowest_threshold",
        description="Politique de sélection: lowest_threshold, fewest_discarded, conformance"
    )
    base_cases: List[str] = Field(default_factory=lambda: list(DEFAULT_BASE_CASES))
    cut_finders: List[str] = Field(default_factory=lambda: list(DEFAULT_CUT_FINDERS))
    fall_throughs: List[str] = Field(default_factory=lambda: list(DEFAULT_FALL_THROUGHS))
    post_processors: List[str] = Field(default_factory=lambda: list(DEFAULT_POST_PROCESSORS))
    strategy_workers: int = Field(default=1, ge=1, description="Workers internes aux stratégies")

    class Config:
        json_schema_extra = {
            "example": {
                "traces": [["a", "b", "c"], ["a", "c", "b"], ["a", "b", "c"]],
                "thresholds": [0.1, 0.2, 0.3],
                "selection": "lowest_threshold"
            }
        }


class DiscoveryResponse(BaseModel):
    """Process tree découvert."""
    tree: str = Field(..., description="Arbre en notation PM4Py")
    structure: Dict[str, Any] = Field(..., description="Arbre sous forme de dict")
    discarded: Dict[str, int] = Field(default_factory=dict, description="Événements écartés par seuil")
    n_traces: int
    timestamp: str


# Routes
@app.get("/")
async def root():
    """Point d'entrée racine."""
    return {
        "name": "Adaptive Miner API",
        "version": __version__,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Vérification de santé."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/strategies")
async def list_strategies():
    """Liste les stratégies et politiques disponibles."""
    return {
        **available_strategies(),
        "selection_policies": list(SELECTION_POLICIES),
        "default_thresholds": list(DEFAULT_NOISE_THRESHOLDS),
    }


@app.post("/discover", response_model=DiscoveryResponse)
def discover(request: DiscoveryRequest):
    """
    Découvre un process tree à partir des traces fournies.

    Les erreurs de configuration (stratégie ou seuil invalide) donnent une
    réponse 422.
    """
    log = Log(request.traces)

    try:
        result = discover_adaptive(
            log,
            thresholds=request.thresholds,
            selection=request.selection,
            base_cases=request.base_cases,
            cut_finders=request.cut_finders,
            fall_throughs=request.fall_throughs,
            post_processors=request.post_processors,
            strategy_workers=request.strategy_workers
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if result is None:
        raise HTTPException(status_code=500, detail="Échec de la découverte")

    logger.info(f"Découverte API: {len(log)} traces -> {result}")

    return DiscoveryResponse(
        tree=str(result),
        structure=result.tree.to_dict(result.root),
        discarded={str(t): n for t, n in result.discarded.items()},
        n_traces=len(log),
        timestamp=datetime.now().isoformat()
    )


def create_app() -> FastAPI:
    """Factory pour créer l'application."""
    return app


def main(host: str = "0.0.0.0", port: int = 8000) -> None:
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
