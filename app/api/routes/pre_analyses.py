"""Pre-analysis endpoints."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.api.routes.matches import MatchResponse
from app.services.matches import PreAnalysisService

router = APIRouter(prefix="/api/pre-analyses", tags=["pre-analyses"])


class PreAnalysisFields(BaseModel):
    """Qualitative study fields, all optional."""

    home_rank: str | None = Field(None, max_length=2)
    away_rank: str | None = Field(None, max_length=2)
    home_form: str | None = Field(None, max_length=30)
    away_form: str | None = Field(None, max_length=30)
    home_must_win: str | None = Field(None, max_length=40)
    away_must_win: str | None = Field(None, max_length=40)
    home_next_match_importance: str | None = Field(None, max_length=30)
    away_next_match_importance: str | None = Field(None, max_length=30)
    home_absences: str | None = Field(None, max_length=30)
    away_absences: str | None = Field(None, max_length=30)
    expected_tendency: str | None = Field(None, max_length=30)
    home_performance_at_home: str | None = Field(None, max_length=30)
    away_performance_away: str | None = Field(None, max_length=30)
    odds_value: str | None = Field(None, max_length=30)
    key_highlight: str | None = Field(None, max_length=300)


class PreAnalysisCreateRequest(PreAnalysisFields):
    match_id: int


class PreAnalysisResponse(PreAnalysisFields):
    match_id: int

    class Config:
        from_attributes = True


class PreAnalysisWithMatch(BaseModel):
    pre_analysis: PreAnalysisResponse
    match: MatchResponse


@router.get("/with-matches", response_model=list[PreAnalysisWithMatch])
async def list_with_matches(db: AsyncSession = Depends(get_db)):
    """Every pre-analysis alongside its match, newest match first."""
    rows = await PreAnalysisService(db).list_with_matches()
    return [
        PreAnalysisWithMatch(
            pre_analysis=PreAnalysisResponse.model_validate(pre_analysis),
            match=MatchResponse.model_validate(match),
        )
        for pre_analysis, match in rows
    ]


@router.get("/{match_id}", response_model=PreAnalysisResponse)
async def get_pre_analysis(match_id: int, db: AsyncSession = Depends(get_db)):
    return await PreAnalysisService(db).get(match_id)


@router.post("", response_model=PreAnalysisResponse, status_code=status.HTTP_201_CREATED)
async def create_pre_analysis(body: PreAnalysisCreateRequest, db: AsyncSession = Depends(get_db)):
    values = body.model_dump(exclude={"match_id"})
    return await PreAnalysisService(db).create(body.match_id, **values)


@router.put("/{match_id}", response_model=PreAnalysisResponse)
async def update_pre_analysis(
    match_id: int, body: PreAnalysisFields, db: AsyncSession = Depends(get_db)
):
    return await PreAnalysisService(db).update(match_id, **body.model_dump(exclude_unset=True))
