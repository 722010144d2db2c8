from fastapi import Depends, Request

from talentflow.config import Settings
from talentflow.database import DocumentStore
from talentflow.services.assessments import AssessmentService
from talentflow.services.candidates import CandidateService
from talentflow.services.jobs import JobService


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_service(store: DocumentStore = Depends(get_store)) -> JobService:
    return JobService(store)


def get_candidate_service(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> CandidateService:
    return CandidateService(store, actor=settings.default_actor, system_actor=settings.system_actor)


def get_assessment_service(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> AssessmentService:
    return AssessmentService(
        store,
        actor=settings.default_actor,
        strict_choices=settings.strict_choice_options,
    )
