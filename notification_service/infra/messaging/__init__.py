"""RabbitMQ messaging: broker, queue topology, redelivery state and subscribers."""
