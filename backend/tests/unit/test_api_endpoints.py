"""HTTP-level tests with services wired to in-memory fakes."""

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import InMemoryLinkRepository, KnowledgeStack, RecordingSleep, ScriptedPageFetcher
from lexbase.application.interfaces import FetchedPage
from lexbase.application.services import (
    CurationService,
    KnowledgeQueryService,
    LinkService,
    PdfIngestionService,
    RetrievalService,
)
from lexbase.domain.result import Ok
from lexbase.infrastructure import dependencies
from lexbase.infrastructure.extractors.pdf_text_extractor import PyMuPdfTextExtractor
from lexbase.main import app

FERIAS = "Art. 7 - O empregado tem direito a férias."


@pytest.fixture
def stack() -> KnowledgeStack:
    stack = KnowledgeStack()
    retrieval = RetrievalService(stack.embedding_service, stack.embeddings)
    fetcher = ScriptedPageFetcher(Ok(FetchedPage(url="https://www.gov.br/ferias", text="Texto da página.")))
    links = LinkService(InMemoryLinkRepository(), fetcher, stack.service, sleep=RecordingSleep())

    app.dependency_overrides = {
        dependencies.get_resource_service: lambda: stack.service,
        dependencies.get_retrieval_service: lambda: retrieval,
        dependencies.get_knowledge_query_service: lambda: KnowledgeQueryService(retrieval),
        dependencies.get_link_service: lambda: links,
        dependencies.get_pdf_ingestion_service: lambda: PdfIngestionService(PyMuPdfTextExtractor(), stack.service),
        dependencies.get_curation_service: lambda: CurationService(
            stack.resources, stack.embeddings, stack.embedding_service, stack.service
        ),
    }
    yield stack
    app.dependency_overrides = {}


@pytest.mark.asyncio
async def test_create_list_search_and_delete_resource(stack: KnowledgeStack):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        created = await client.post("/api/v1/resources", json={"content": FERIAS})
        assert created.status_code == 201
        body = created.json()
        assert body["success"] is True
        assert body["embedding_count"] == 1

        listed = await client.get("/api/v1/resources", params={"source_type": "text"})
        assert [r["id"] for r in listed.json()] == [body["resource_id"]]

        search = await client.post("/api/v1/knowledge/search", json={"query": "direito a férias"})
        assert search.status_code == 200
        fragments = search.json()["fragments"]
        assert fragments[0]["resource_id"] == body["resource_id"]
        assert search.json()["total_tokens"] == sum(f["token_count"] for f in fragments)

        query = await client.post("/api/v1/knowledge/query", json={"question": "direito a férias"})
        assert query.json()["found"] is True

        deleted = await client.delete(f"/api/v1/resources/{body['resource_id']}")
        assert deleted.status_code == 200
        assert deleted.json()["deleted"] == 1

        missing = await client.delete(f"/api/v1/resources/{body['resource_id']}")
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_blank_content_is_rejected(stack: KnowledgeStack):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/v1/resources", json={"content": "   "})

    assert response.status_code == 422
    assert await stack.service.list_resources() == []


@pytest.mark.asyncio
async def test_pdf_upload_rejects_other_file_types(stack: KnowledgeStack):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/v1/resources/pdf",
            files={"file": ("contrato.docx", b"PK\x03\x04", "application/octet-stream")},
            data={"lei": "CLT"},
        )

    assert response.status_code == 400
    assert response.json()["message"] == "O arquivo deve ser um PDF"


@pytest.mark.asyncio
async def test_link_lifecycle(stack: KnowledgeStack):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        created = await client.post("/api/v1/links", json={"url": "https://www.gov.br/ferias", "title": "Férias"})
        assert created.status_code == 201
        duplicate = await client.post("/api/v1/links", json={"url": "https://www.gov.br/ferias", "title": "Férias"})
        assert duplicate.status_code == 400

        (link,) = (await client.get("/api/v1/links")).json()
        refreshed = await client.post(f"/api/v1/links/{link['id']}/refresh")
        assert refreshed.status_code == 200

        deleted = await client.delete(f"/api/v1/links/{link['id']}")
        assert deleted.json()["deleted"] == 1
        assert (await client.delete(f"/api/v1/links/{link['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_curated_chunks_and_bulk_delete(stack: KnowledgeStack):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/v1/curated/resource",
            json={"chunks": ["Art. 1. Texto."], "full_content": "Art. 1. Texto."},
        )
        assert response.status_code == 201
        source_id = response.json()["source_id"]

        deleted = await client.delete("/api/v1/resources", params={"source_id": source_id})
        assert deleted.json()["deleted"] == 1
        assert stack.embeddings.rows == []
