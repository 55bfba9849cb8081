from __future__ import annotations

import json

from kafka import KafkaProducer

from railreserve.bus.routing import EVENT_TOPIC_MAP
from railreserve.models.events import ReservationEvent


class KafkaBus:
    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str = "railreserve-producer",
        producer: KafkaProducer | None = None,
    ) -> None:
        self._owns_producer = producer is None
        self._producer = producer or KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            client_id=client_id,
            linger_ms=10,
            acks="all",
            value_serializer=lambda payload: json.dumps(payload).encode("utf-8"),
            key_serializer=lambda key: key.encode("utf-8"),
        )

    def publish(self, event: ReservationEvent) -> None:
        topic = EVENT_TOPIC_MAP[event.event_type]
        payload = event.model_dump(mode="json")
        # keyed by train so one train's events stay ordered within a partition
        self._producer.send(topic, key=event.train_id, value=payload)

    def close(self) -> None:
        if self._owns_producer:
            self._producer.flush()
            self._producer.close()
