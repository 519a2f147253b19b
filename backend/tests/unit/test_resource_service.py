"""Unit tests for the ResourceService ingestion pipeline."""

import pytest

from fakes import FakeEmbeddingProvider, KnowledgeStack
from lexbase.application.schemas import ResourceCreate
from lexbase.application.services import RetrievalService
from lexbase.domain.entities import SourceType
from lexbase.domain.exceptions import EntityNotFoundError

FERIAS = "Art. 7 - O empregado tem direito a férias."
ARTICLE_SENTENCE = "O empregador deve conceder férias ao empregado após cada período de doze meses."


@pytest.fixture
def stack() -> KnowledgeStack:
    return KnowledgeStack()


@pytest.mark.asyncio
async def test_text_resource_is_embedded_verbatim_and_retrievable(stack: KnowledgeStack):
    outcome = await stack.service.create_resource(ResourceCreate(content=FERIAS))

    assert outcome.success
    assert outcome.message == "Resource successfully created and embedded."
    rows = await stack.service.get_embeddings(outcome.resource_id)
    assert [row.content for row in rows] == [FERIAS]

    retrieval = RetrievalService(stack.embedding_service, stack.embeddings)
    fragments = await retrieval.find_relevant_content("direito a férias")

    assert fragments
    assert fragments[0].resource_id == outcome.resource_id
    assert fragments[0].similarity > 0.2


@pytest.mark.asyncio
async def test_oversized_text_is_still_a_single_chunk(stack: KnowledgeStack):
    content = " ".join(["palavra"] * 900)
    outcome = await stack.service.create_resource({"content": content})

    assert outcome.success
    assert outcome.chunk_count == 1
    assert len(stack.embeddings.rows) == 1


@pytest.mark.asyncio
async def test_long_link_article_is_chunked(stack: KnowledgeStack):
    content = " ".join([ARTICLE_SENTENCE] * 45)
    assert len(content) > 3000

    outcome = await stack.service.ingest(content, SourceType.LINK, "link-1")

    assert outcome.success
    assert outcome.chunk_count >= 2
    assert outcome.embedding_count == outcome.chunk_count
    assert all(len(row.content) <= 1000 for row in stack.embeddings.rows)


@pytest.mark.parametrize(
    "payload",
    [
        {"content": ""},
        {"content": "   \n"},
        {"content": "ok", "source_type": "video"},
        {"content": "ok", "source_id": "x" * 192},
    ],
)
@pytest.mark.asyncio
async def test_invalid_input_is_rejected_before_any_write(stack: KnowledgeStack, payload: dict):
    outcome = await stack.service.create_resource(payload)

    assert not outcome.success
    assert outcome.message.startswith("Invalid input")
    assert await stack.resources.get_all() == []
    assert stack.provider.calls == []


@pytest.mark.asyncio
async def test_failed_batch_keeps_resource_and_other_batches():
    stack = KnowledgeStack(batch_size=1, max_chars=30, provider=FakeEmbeddingProvider(fail_calls={1}))
    content = "Primeiro parágrafo aqui.\n\nSegundo parágrafo aqui."

    outcome = await stack.service.ingest(content, SourceType.PDF, "pdf-1")

    assert outcome.success
    assert outcome.message == "Resource created; 1 of 2 chunks embedded."
    assert outcome.embedding_count == 1
    assert [row.content for row in stack.embeddings.rows] == ["Segundo parágrafo aqui."]
    assert await stack.resources.get_by_id(outcome.resource_id) is not None


@pytest.mark.asyncio
async def test_embedding_store_failure_still_reports_resource():
    stack = KnowledgeStack()
    stack.embeddings.fail_store = True

    outcome = await stack.service.create_resource({"content": FERIAS})

    assert outcome.success
    assert outcome.embedding_count == 0
    assert await stack.resources.get_by_id(outcome.resource_id) is not None


@pytest.mark.asyncio
async def test_resource_creation_failure_is_an_outcome(stack: KnowledgeStack):
    stack.resources.fail_create = True

    outcome = await stack.service.create_resource({"content": FERIAS})

    assert not outcome.success
    assert outcome.message.startswith("Erro ao criar recurso")


@pytest.mark.asyncio
async def test_delete_resource_cascades_to_embeddings(stack: KnowledgeStack):
    content = " ".join([ARTICLE_SENTENCE] * 45)
    outcome = await stack.service.ingest(content, SourceType.LINK, "link-1")
    assert len(await stack.service.get_embeddings(outcome.resource_id)) >= 2

    assert await stack.service.delete_resource(outcome.resource_id) is True

    assert await stack.service.get_embeddings(outcome.resource_id) == []
    with pytest.raises(EntityNotFoundError):
        await stack.service.get_resource(outcome.resource_id)


@pytest.mark.asyncio
async def test_delete_missing_resource_raises(stack: KnowledgeStack):
    with pytest.raises(EntityNotFoundError):
        await stack.service.delete_resource("missing")


@pytest.mark.asyncio
async def test_list_and_delete_by_source(stack: KnowledgeStack):
    await stack.service.ingest("Texto manual.", SourceType.TEXT, None)
    await stack.service.ingest("Página um.", SourceType.LINK, "link-1")
    await stack.service.ingest("Página dois.", SourceType.LINK, "link-1")
    await stack.service.ingest("Outro PDF.", SourceType.PDF, "pdf-1")

    assert len(await stack.service.list_resources()) == 4
    assert len(await stack.service.list_resources(source_type=SourceType.LINK)) == 2
    assert [r.content for r in await stack.service.list_resources(source_id="link-1")] == [
        "Página um.",
        "Página dois.",
    ]
    assert await stack.service.list_resources(source_type=SourceType.PDF, source_id="link-1") == []

    assert await stack.service.delete_by_source_id("link-1") == 2
    assert len(await stack.service.list_resources()) == 2
    assert all(row.content not in {"Página um.", "Página dois."} for row in stack.embeddings.rows)


@pytest.mark.asyncio
async def test_add_to_knowledge_base_prefixes_title(stack: KnowledgeStack):
    outcome = await stack.service.add_to_knowledge_base("O prazo é de 30 dias.", title="Prazo de férias")

    assert outcome.success
    assert outcome.message == "Conteúdo adicionado com sucesso à base de conhecimento."
    resource = await stack.service.get_resource(outcome.resource_id)
    assert resource.content == "# Prazo de férias\n\nO prazo é de 30 dias."
    assert resource.source_type == SourceType.TEXT
    assert resource.source_id.startswith("user-")


@pytest.mark.asyncio
async def test_add_to_knowledge_base_without_title(stack: KnowledgeStack):
    outcome = await stack.service.add_to_knowledge_base("Sem título.")
    resource = await stack.service.get_resource(outcome.resource_id)
    assert resource.content == "Sem título."
