"""Web acquisition subpackage.

Data flow:
    `classifier` -> (direct URL) or (`orchestrator` -> `providers`) ->
    candidate URLs -> `fetcher` (`request_layer` + `extractor`) ->
    `AcquiredContent` records returned by `web_module.WebAcquisitionModule`.
"""
