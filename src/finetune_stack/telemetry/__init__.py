# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""OpenTelemetry initialization for the Fine-Tuning Stack.

This module configures OpenTelemetry metrics export based on environment variables.
If OTEL_EXPORTER_OTLP_ENDPOINT is set, metrics will be exported to that endpoint.
"""

import os

from finetune_stack.log import get_logger

logger = get_logger(__name__, category="telemetry")


def setup_telemetry():
    """Initialize OpenTelemetry metrics exporter if configured via environment.

    This function checks for OTEL_EXPORTER_OTLP_ENDPOINT and configures the
    MeterProvider to export metrics to the specified endpoint.
    """
    otlp_endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")

    if not otlp_endpoint:
        logger.debug("OTEL_EXPORTER_OTLP_ENDPOINT not set, metrics will not be exported")
        return

    try:
        from opentelemetry import metrics
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (
            OTLPMetricExporter,
        )
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource

        export_interval_ms = int(os.environ.get("OTEL_METRIC_EXPORT_INTERVAL", "60000"))

        exporter = OTLPMetricExporter(endpoint=f"{otlp_endpoint}/v1/metrics")
        reader = PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval_ms)

        service_name = os.environ.get("OTEL_SERVICE_NAME", "finetune-stack")
        resource = Resource(attributes={"service.name": service_name})

        provider = MeterProvider(resource=resource, metric_readers=[reader])
        metrics.set_meter_provider(provider)

        logger.info(
            f"OpenTelemetry metrics exporter configured: {otlp_endpoint} (interval: {export_interval_ms / 1000.0}s)"
        )

    except Exception as e:
        logger.warning(f"Failed to configure OpenTelemetry metrics exporter: {e}")


# Initialize telemetry when module is imported
setup_telemetry()
