import asyncio
import os
import socket
import sys

from prometheus_client import start_http_server

from ethsync.backfill import Backfill
from ethsync.config import Settings
from ethsync.logging import log
from ethsync.rpc import AsyncRpcClient
from ethsync.sinks import DryRunSink, ResultSink


def build_sink(settings: Settings) -> ResultSink:
    if settings.sink == "kafka":
        from ethsync.sinks.kafka_sink import KafkaResultSink, init_producer

        instance_id = os.getenv("POD_NAME") or f"{socket.gethostname()}-{os.getpid()}"
        transactional_id = f"blockchain.ingestion.{settings.job_name}.{instance_id}"
        producer = init_producer(transactional_id, settings.kafka_broker)
        return KafkaResultSink(producer, settings.kafka_topic_prefix)
    return DryRunSink()


async def run(settings: Settings) -> int:
    client = AsyncRpcClient(settings.rpc_url)
    sink = build_sink(settings)
    try:
        summary = await Backfill(settings, client, sink).run()
    finally:
        await client.close()
        sink.close()

    for r, error in summary.failed:
        log.error(
            "range_needs_reenqueue",
            extra={"start": r.start_block, "end": r.end_block, "error": str(error)[:200]},
        )
    return 0 if summary.ok else 1


def main() -> int:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        log.error("invalid_config", extra={"error": str(e)})
        return 2

    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        log.info("metrics_server_started", extra={"port": settings.metrics_port})

    return asyncio.run(run(settings))


if __name__ == "__main__":
    sys.exit(main())
