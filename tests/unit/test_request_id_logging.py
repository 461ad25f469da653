import asyncio
import logging

from core.logging_config import RequestIDFilter, request_id_var


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def make_logger(name):
    handler = ListHandler()
    handler.addFilter(RequestIDFilter())
    logger = logging.getLogger(name)
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.INFO)
    return logger, handler


def test_record_outside_a_request_has_no_id():
    logger, handler = make_logger("storefront.test.no_request")

    logger.info("startup")

    assert handler.records[0].request_id is None


async def test_concurrent_requests_keep_their_own_ids():
    logger, handler = make_logger("storefront.test.concurrent")

    async def request(request_id, started, other_started):
        token = request_id_var.set(request_id)
        try:
            started.set()
            # Both requests are in flight before either logs
            await other_started.wait()
            logger.info("handled", extra={"who": request_id})
        finally:
            request_id_var.reset(token)

    a_started, b_started = asyncio.Event(), asyncio.Event()
    await asyncio.gather(
        request("req-a", a_started, b_started),
        request("req-b", b_started, a_started),
    )

    assert len(handler.records) == 2
    for record in handler.records:
        assert record.request_id == record.who
    assert request_id_var.get() is None
