"""
function_app.py – Azure Functions v2 entry point.

Uses the decorator-based programming model (v2), no function.json needed.

Scheduling is handled by Azure Data Factory (daily 10:00 UTC, after the CBR
has published the day's table). The Function App exposes a single HTTP
trigger so ADF can call it with a function key. With
ADLS_CONNECTION_STRING set, pipeline.py writes both CSVs to ADLS Gen2.
"""

import logging

import azure.functions as func

from pipeline import run

app = func.FunctionApp()


@app.route(route="cbr_etl", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def cbr_etl(req: func.HttpRequest) -> func.HttpResponse:
    """HTTP trigger called by Azure Data Factory; the window ends today."""
    logging.info("CBR ETL triggered via HTTP.")

    try:
        report = run()
    except Exception as exc:
        logging.exception("CBR ETL failed.")
        return func.HttpResponse(f"CBR ETL failed: {exc}", status_code=500)

    logging.info("CBR ETL complete: %s", report.summary())
    return func.HttpResponse(f"CBR ETL {report.summary()}.", status_code=200)
