"""Drains the paginated case-list endpoint into one ordered list."""

import asyncio

from eval_studio.client.domain.api import EvalApi, RunTarget
from eval_studio.run.domain.case import EvalCaseResult

DEFAULT_PAGE_SIZE = 200


async def fetch_all_run_cases(
    api: EvalApi, target: RunTarget, page_size: int = DEFAULT_PAGE_SIZE
) -> list[EvalCaseResult]:
    """Fetch every page of a run's cases, preserving the service's order.

    The first page reports the page count; the remaining pages are fetched
    concurrently and concatenated in page order. Any page failure cancels the
    pages still in flight and fails the whole load, so a partial list is never
    returned as complete.
    """
    first_page = await api.get_run_cases(target, page=0, page_size=page_size)
    if first_page.total_pages <= 1:
        return list(first_page.content)

    try:
        async with asyncio.TaskGroup() as group:
            pending = [
                group.create_task(
                    api.get_run_cases(target, page=page, page_size=page_size)
                )
                for page in range(1, first_page.total_pages)
            ]
    except ExceptionGroup as group_error:
        # callers handle the page error itself, not the group
        raise group_error.exceptions[0] from None
    cases = list(first_page.content)
    for task in pending:
        cases.extend(task.result().content)
    return cases
