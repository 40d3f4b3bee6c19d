"""
HTTP API over the annotation store and the town report.

Endpoints: /health, /towns, /resolve, /annotations (GET/POST), /summary, /export

Run:
    python -m api.server --config config/params.yaml
    # or: uvicorn api.server:create_app --factory
"""
from __future__ import annotations

import argparse
import math
import warnings
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from common.config import load_config, rates_from_config
from common.errors import InvalidCoordinate, PersistenceWriteWarning
from common.logging_setup import get_logger, setup_logging
from common.types import Point
from common.utils import fixed, iso_now_ms
from reporting.aggregate import summarize_all
from reporting.export import REPORT_MEDIA_TYPE, display_line, export
from store.annotations import AnnotationStore, store_from_config


log = get_logger("api")


class AnnotationIn(BaseModel):
    lat: float
    lon: float
    note: str = ""


def create_app(P: Optional[Dict[str, Any]] = None, store: Optional[AnnotationStore] = None) -> FastAPI:
    """
    Build the API around one store instance (single writer).
    `store` lets tests inject a store backed by an in-memory port.
    """
    if P is None:
        P = load_config()
    if store is None:
        store = store_from_config(P)
    rates = rates_from_config(P)
    report_cfg = P.get("report", {})
    report_name = str(report_cfg.get("filename", "jia_town_summary.csv"))
    report_decimals = int(report_cfg.get("decimals", 2))
    display_decimals = int(P.get("display", {}).get("decimals", 1))
    towns = store.resolver.towns

    app = FastAPI(title="JIA Town Mapping API", version="1.0.0")
    app.state.store = store
    app.state.rates = rates

    # (Optional) CORS for local dev tools
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "ts": iso_now_ms(),
            "towns": len(towns),
            "annotations": len(store),
            "storage": {
                "key": store.key,
                "last_write_error": str(store.last_persist_error) if store.last_persist_error else None,
            },
        }

    @app.get("/towns")
    def list_towns():
        return [t.to_dict() for t in towns]

    @app.get("/resolve")
    def resolve(lat: float = Query(...), lon: float = Query(...)):
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise HTTPException(status_code=422, detail="coordinate must be finite")
        return store.resolver.resolve(Point(lat=lat, lon=lon)).to_dict()

    @app.get("/annotations")
    def list_annotations():
        return [a.to_record() for a in store.all()]

    @app.post("/annotations", status_code=201)
    def add_annotation(body: AnnotationIn):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", PersistenceWriteWarning)
            try:
                ann = store.add(body.lat, body.lon, note=body.note)
            except InvalidCoordinate as e:
                raise HTTPException(status_code=422, detail=str(e))
        headers = {}
        failed = [w for w in caught if issubclass(w.category, PersistenceWriteWarning)]
        if failed:
            headers["X-Persistence-Warning"] = "not_persisted"
        return JSONResponse(ann.to_record(), status_code=201, headers=headers)

    @app.get("/summary")
    def summary():
        out = []
        for s in summarize_all(towns, store.all(), rates):
            row = s.to_dict()
            row["expected_center_text"] = fixed(s.expected_center, display_decimals)
            row["display"] = display_line(s, rates, display_decimals)
            out.append(row)
        return {
            "rates_per_1000": {"center": rates.center, "low": rates.low, "high": rates.high},
            "towns": out,
        }

    @app.get("/export")
    def export_report():
        blob = export(towns, store.all(), rates, report_decimals)
        headers = {"Content-Disposition": f'attachment; filename="{report_name}"'}
        return Response(content=blob, media_type=REPORT_MEDIA_TYPE, headers=headers)

    log.info("API ready", extra={"extra": {"towns": len(towns), "annotations": len(store), "key": store.key}})
    return app


# -------- local dev entrypoint --------
def main() -> None:
    ap = argparse.ArgumentParser(description="JIA Town Mapping API")
    ap.add_argument("--config", default=None)
    args = ap.parse_args()

    P = load_config(args.config)
    setup_logging(P.get("logging", {}).get("level", "INFO"))
    api_cfg = P.get("api", {})
    uvicorn.run(create_app(P), host=str(api_cfg.get("host", "0.0.0.0")), port=int(api_cfg.get("port", 8000)))


if __name__ == "__main__":
    main()
