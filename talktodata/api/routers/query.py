"""
Query router: NL-to-SQL and execution.

Endpoints:
- POST /api/generate      : Question -> SQL
- POST /api/execute       : Run SQL (sanitized + validated first)
- POST /api/explain       : SQL -> plain-text explanation
- POST /api/fix           : Failing SQL + error -> corrected SQL
- POST /api/chart-suggest : Result metadata -> chart suggestion
- POST /api/export        : Rows -> CSV / JSON download

Blocking driver and LLM calls run in a worker thread so the event loop
stays free.
"""

import asyncio

from fastapi import APIRouter, Depends, Response

from ...models import ChartSuggestion, QueryResult
from ...orchestrator import QueryOrchestrator
from ...session import CookieSession
from ...utils.export import export_filename, export_results
from ...validators import is_valid_sql_structure
from ..deps import get_orchestrator, get_session, logger
from ..schemas import (
    ApiResponse,
    ChartSuggestRequest,
    ExplainData,
    ExportRequest,
    FixData,
    FixRequest,
    GenerateData,
    GenerateRequest,
    SqlRequest,
)


router = APIRouter(prefix="/api", tags=["Query"])


@router.post("/generate", response_model=ApiResponse[GenerateData])
async def generate_sql(
    request: GenerateRequest,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Translate a question into SQL using the connected database's schema."""
    sql = await asyncio.to_thread(orchestrator.generate_sql, session, request.question)
    return ApiResponse(data=GenerateData(sql=sql, is_valid_structure=is_valid_sql_structure(sql)))


@router.post("/execute", response_model=ApiResponse[QueryResult])
async def execute_sql(
    request: SqlRequest,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """
    Execute a query. Anything other than a plain SELECT / WITH is
    rejected with DANGEROUS_QUERY before a connection is opened.
    """
    result = await asyncio.to_thread(orchestrator.execute_sql, session, request.sql)
    return ApiResponse(data=result)


@router.post("/explain", response_model=ApiResponse[ExplainData])
async def explain_sql(
    request: SqlRequest,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    explanation = await asyncio.to_thread(orchestrator.explain_sql, session, request.sql)
    return ApiResponse(data=ExplainData(explanation=explanation))


@router.post("/fix", response_model=ApiResponse[FixData])
async def fix_sql(
    request: FixRequest,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    fixed = await asyncio.to_thread(orchestrator.fix_sql, session, request.sql, request.error)
    return ApiResponse(data=FixData(sql=fixed))


@router.post("/chart-suggest", response_model=ApiResponse[ChartSuggestion])
async def suggest_chart(
    request: ChartSuggestRequest,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    suggestion = await asyncio.to_thread(
        orchestrator.suggest_chart,
        session,
        request.columns,
        request.sample_rows,
        request.row_count,
    )
    return ApiResponse(data=suggestion)


@router.post("/export")
async def export(request: ExportRequest):
    """Serialize result rows sent by the client into a downloadable file."""
    content, media_type = export_results(request.columns, request.rows, request.format)
    filename = export_filename(request.format, stem=request.filename or "query_results")
    logger.debug("Exporting %d rows as %s", len(request.rows), request.format.value)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
