import logging

import sentry_sdk
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sentry_sdk.integrations.aws_lambda import AwsLambdaIntegration

from log_analysis import config
from log_analysis.analysis.analyze import SPEC_ANALYSIS_CONFIGS
from log_analysis.analysis.errors import (
    CyclicDependency,
    InvalidModuleDeclaration,
    UnknownDependency,
)
from log_analysis.report import Fight, save_fight

if config.SENTRY_ENABLED:
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
        attach_stacktrace=True,
        integrations=[AwsLambdaIntegration()] if config.RUNNING_IN_LAMBDA else [],
    )
app = FastAPI()


async def catch_exceptions_middleware(request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logging.exception(e)
        return Response("Internal server error", status_code=500)


# Add this middleware first so 500 errors have CORS headers
app.middleware("http")(catch_exceptions_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeResponse(BaseModel):
    data: dict


def save_combat_log(fight: Fight):
    try:
        save_fight(fight, config.SAVED_LOGS_DIR)
    except OSError as e:
        # saving is a debugging aid, the analysis still runs
        logging.error(f"Failed to save combat log: {e}")


@app.get("/specs")
async def list_specs():
    return {"data": sorted(SPEC_ANALYSIS_CONFIGS)}


@app.post("/analyze_fight", response_model=AnalyzeResponse)
async def analyze_fight(response: Response, fight: Fight):
    if config.SAVE_COMBAT_LOGS:
        save_combat_log(fight)

    try:
        data = fight.analyze()
    except (CyclicDependency, InvalidModuleDeclaration, UnknownDependency) as e:
        logging.error(f"Invalid module table for spec {fight.spec}: {e}")
        response.status_code = 500
        return {"data": {"error": str(e)}}

    response.headers["Cache-Control"] = "no-cache"
    return {"data": data}
