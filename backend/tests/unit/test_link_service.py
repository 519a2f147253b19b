"""Unit tests for link registration, retries and refresh."""

import pytest

from fakes import InMemoryLinkRepository, KnowledgeStack, RecordingSleep, ScriptedPageFetcher
from lexbase.application.interfaces import FetchedPage
from lexbase.application.services import LinkService
from lexbase.application.services.link_service import format_link_content
from lexbase.domain.entities import SourceType
from lexbase.domain.exceptions import EntityNotFoundError
from lexbase.domain.result import Err, ErrorKind, Ok

URL = "https://www.gov.br/trabalho/ferias"
PAGE_TEXT = "O empregado tem direito a trinta dias de férias após doze meses de trabalho."


def _page(text: str = PAGE_TEXT) -> Ok:
    return Ok(FetchedPage(url=URL, text=text))


def _build(*results) -> tuple[LinkService, KnowledgeStack, InMemoryLinkRepository, ScriptedPageFetcher, RecordingSleep]:
    stack = KnowledgeStack()
    links = InMemoryLinkRepository()
    fetcher = ScriptedPageFetcher(*results)
    sleep = RecordingSleep()
    service = LinkService(links, fetcher, stack.service, max_attempts=3, backoff_seconds=2.0, sleep=sleep)
    return service, stack, links, fetcher, sleep


def test_format_link_content():
    assert format_link_content("Férias", URL, "texto") == f"# Férias\n\nURL: {URL}\n\ntexto"


@pytest.mark.asyncio
async def test_create_link_fetches_and_ingests():
    service, stack, links, _, sleep = _build(_page())

    outcome = await service.create_link({"url": URL, "title": "Férias", "description": "Guia oficial"})

    assert outcome.success
    assert outcome.message == "Link adicionado com sucesso e conteúdo processado."
    (link,) = await service.list_links()
    (resource,) = await stack.service.list_resources(source_id=link.id)
    assert resource.source_type == SourceType.LINK
    assert resource.content == format_link_content("Férias", URL, PAGE_TEXT)
    assert links.updates == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_duplicate_url_is_reported_with_existing_id():
    service, _, _, fetcher, _ = _build(_page())
    first = await service.create_link({"url": URL, "title": "Férias"})
    (link,) = await service.list_links()

    second = await service.create_link({"url": URL, "title": "De novo"})

    assert first.success
    assert not second.success
    assert second.message == f"Link já existe com ID: {link.id}"
    assert second.source_id == link.id
    assert len(fetcher.urls) == 1


@pytest.mark.asyncio
async def test_invalid_link_input_is_rejected():
    service, _, _, fetcher, _ = _build(_page())

    outcome = await service.create_link({"url": "not a url", "title": ""})

    assert not outcome.success
    assert outcome.message.startswith("Invalid input")
    assert fetcher.urls == []


@pytest.mark.asyncio
async def test_retryable_failures_back_off_exponentially():
    service, _, _, fetcher, sleep = _build(
        Err(kind=ErrorKind.NETWORK, message="connection reset"),
        Err(kind=ErrorKind.TIMEOUT, message="timed out"),
        _page(),
    )

    outcome = await service.create_link({"url": URL, "title": "Férias"})

    assert outcome.success
    assert len(fetcher.urls) == 3
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_non_retryable_failure_is_not_retried():
    service, stack, _, fetcher, sleep = _build(
        Err(kind=ErrorKind.NOT_FOUND, message="Status da resposta: 404 Not Found"),
    )

    outcome = await service.create_link({"url": URL, "title": "Férias"})

    assert not outcome.success
    assert outcome.message == "Erro ao buscar conteúdo da URL: Status da resposta: 404 Not Found"
    assert len(fetcher.urls) == 1
    assert sleep.delays == []
    assert await stack.service.list_resources() == []


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    service, _, links, fetcher, sleep = _build(Err(kind=ErrorKind.RATE_LIMITED, message="429"))

    outcome = await service.create_link({"url": URL, "title": "Férias"})

    assert not outcome.success
    assert len(fetcher.urls) == 3
    assert sleep.delays == [2.0, 4.0]
    assert links.updates == 0
    # the link stays registered so it can be refreshed later
    assert outcome.source_id is not None
    assert await links.get_by_id(outcome.source_id) is not None


@pytest.mark.asyncio
async def test_refresh_replaces_derived_resources():
    service, stack, links, _, _ = _build(_page(), _page("Texto novo sobre o décimo terceiro salário."))
    await service.create_link({"url": URL, "title": "Férias"})
    (link,) = await service.list_links()
    first_processed = link.last_processed

    outcome = await service.refresh_link(link.id)

    assert outcome.success
    assert outcome.message == "Conteúdo do link atualizado com sucesso."
    (resource,) = await stack.service.list_resources(source_id=link.id)
    assert resource.content.endswith("Texto novo sobre o décimo terceiro salário.")
    assert all(row.resource_id == resource.id for row in stack.embeddings.rows)
    assert link.last_processed >= first_processed
    assert links.updates == 2


@pytest.mark.asyncio
async def test_refresh_unknown_link():
    service, *_ = _build(_page())
    outcome = await service.refresh_link("missing")
    assert not outcome.success
    assert outcome.message == "Link não encontrado."


@pytest.mark.asyncio
async def test_delete_link_removes_derived_resources():
    service, stack, links, _, _ = _build(_page())
    await service.create_link({"url": URL, "title": "Férias"})
    (link,) = await service.list_links()

    removed = await service.delete_link(link.id)

    assert removed == 1
    assert await links.get_all() == []
    assert await stack.service.list_resources() == []
    assert stack.embeddings.rows == []


@pytest.mark.asyncio
async def test_delete_unknown_link_raises():
    service, *_ = _build(_page())
    with pytest.raises(EntityNotFoundError):
        await service.delete_link("missing")


@pytest.mark.asyncio
async def test_link_store_failure_returns_outcome_without_fetching():
    service, _, links, fetcher, _ = _build(_page())
    links.fail_create = True

    outcome = await service.create_link({"url": URL, "title": "Férias"})

    assert not outcome.success
    assert outcome.message == "Erro ao salvar link: database unavailable"
    assert fetcher.urls == []


@pytest.mark.asyncio
async def test_failed_processed_mark_is_reported_as_outcome():
    service, stack, links, _, _ = _build(_page())
    links.fail_update = True

    outcome = await service.create_link({"url": URL, "title": "Férias"})

    assert not outcome.success
    assert outcome.message.startswith("Conteúdo processado, mas o link não pôde ser atualizado")
    # the page content itself was ingested
    (resource,) = await stack.service.list_resources()
    assert outcome.resource_id == resource.id
    assert outcome.source_id == resource.source_id


@pytest.mark.asyncio
async def test_refresh_stops_when_previous_resources_cannot_be_deleted():
    service, stack, _, fetcher, _ = _build(_page())
    await service.create_link({"url": URL, "title": "Férias"})
    (link,) = await service.list_links()
    stack.resources.fail_delete = True

    outcome = await service.refresh_link(link.id)

    assert not outcome.success
    assert outcome.source_id == link.id
    assert "foreign key violation" in outcome.message
    assert len(fetcher.urls) == 1
    assert len(await stack.service.list_resources(source_id=link.id)) == 1
