"""
Anomaly scoring service that runs bulk reference scans and records anomaly notifications.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

from typing import Optional, Sequence

from engine.anomaly.scan import ScanReport, scan
from engine.anomaly.scoring import VehicleObservation
from services.notification_service import notification_service
from store import models as model_store


async def score_observations(
    observations: Sequence[VehicleObservation],
    max_parallel: Optional[int] = None,
    notify: bool = True,
) -> ScanReport:
    report = await scan(observations, model_store.find_with_year, max_parallel=max_parallel)
    if notify and report.events:
        flagged = report.flagged()
        await notification_service.record_events(
            [o.event for o in flagged],
            [o.model for o in flagged],
        )
    return report
