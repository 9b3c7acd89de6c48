"""
Anomaly routes: scoring of vehicle observations against the reference models in force.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from fastapi import APIRouter

from api.requests import ScoreRequest
from api.responses import ScanReportOut
from api.routes.exception import handle_exceptions
from services.anomaly_service import score_observations

router = APIRouter(tags=["Anomalies"])


@router.post("/anomalies/score", summary="Score observations against reference models")
@handle_exceptions
async def score(req: ScoreRequest) -> ScanReportOut:
    observations = [o.to_observation() for o in req.observations]
    report = await score_observations(observations, max_parallel=req.max_parallel, notify=req.notify)
    return ScanReportOut.model_validate(report)
