import json

from confluent_kafka import Producer

from ethsync.decoding import record_to_dict
from ethsync.execution import JobResult
from ethsync.logging import log
from .base import ResultSink


# -----------------------------
# delivery report for producer callback
# -----------------------------
def delivery_report(err, msg):
    if err:
        log.error(
            "kafka_delivery_failed",
            extra={
                "topic": msg.topic(),
                "partition": msg.partition(),
                "error": str(err),
            },
        )


def init_producer(transactional_id: str, kafka_broker: str) -> Producer:
    producer = Producer({
        "bootstrap.servers": kafka_broker,

        # Exactly-once / Transactions
        "enable.idempotence": True,
        "acks": "all",
        "transactional.id": transactional_id,

        "max.in.flight.requests.per.connection": 5,

        # Throughput tuning
        "linger.ms": 20,
        "batch.size": 262144,          # 256KB
        "compression.type": "lz4",

        # Timeouts(avoid Erroneous state)
        "request.timeout.ms": 60000,
        "delivery.timeout.ms": 120000,
        "transaction.timeout.ms": 600000,  # 10 min

        # Backpressure protection
        "queue.buffering.max.kbytes": 1048576,  # 1GB
        "queue.buffering.max.messages": 1000000,

        "socket.keepalive.enable": True,
    })
    log.info("🔧 Initializing Kafka transactions...")
    producer.init_transactions()
    return producer


def record_key(kind: str, record) -> str:
    if kind in ("blocks", "transactions"):
        return record.hash
    if kind == "logs":
        return f"{record.block_hash}-{record.log_index}"
    if kind == "nft_transfers":
        return f"{record.block_hash}-{record.log_index}-{record.batch_index}"
    return record.address


class KafkaResultSink(ResultSink):
    """
    One Kafka transaction per JobResult; every record kind goes to
    ``<topic_prefix>.<kind>`` as a JSON message.
    """

    def __init__(self, producer: Producer, topic_prefix: str):
        self.producer = producer
        self.topic_prefix = topic_prefix

    def topic(self, kind: str) -> str:
        return f"{self.topic_prefix}.{kind}"

    def write(self, result: JobResult) -> None:
        self.producer.begin_transaction()
        try:
            for kind, records in result.record_sets().items():
                topic = self.topic(kind)
                for record in records:
                    self.producer.produce(
                        topic=topic,
                        key=record_key(kind, record),
                        value=json.dumps(record_to_dict(record)).encode("utf-8"),
                        on_delivery=delivery_report,
                    )
                    self.producer.poll(0)
            self.producer.commit_transaction()
        except Exception as e:
            log.error(
                "kafka_transaction_aborted",
                extra={
                    "range_start": result.block_range.start_block,
                    "range_end": result.block_range.end_block,
                    "error": str(e)[:200],
                },
            )
            self.producer.abort_transaction()
            raise

    def close(self) -> None:
        self.producer.flush(10)
