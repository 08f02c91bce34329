"""
Health checks and monitoring with Prometheus metrics
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
import time
import psutil
import structlog

from docbrain.errors import ToolkitUnavailableError

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
EXTRACTION_REQUESTS = Counter('extraction_requests_total', 'Total extraction runs', ['source', 'status'])
EXTRACTION_DURATION = Histogram('extraction_duration_seconds', 'Extraction engine duration', ['source'])

class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_nlp_toolkit(self) -> dict:
        """Check that the spaCy pipeline can be loaded"""
        from docbrain.services.nlp.toolkit import get_toolkit
        try:
            toolkit = get_toolkit()
            sentences = toolkit.split_sentences("Health checks run here. They parse two sentences.")
            return {
                "status": "healthy",
                "message": "NLP toolkit loaded successfully",
                "sentences_parsed": len(sentences)
            }
        except ToolkitUnavailableError as e:
            logger.error("nlp_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"NLP toolkit unavailable: {str(e)}"
            }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "cpu_percent": cpu_percent,
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "disk_percent": disk.percent,
                "disk_free_gb": round(disk.free / (1024**3), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except (psutil.Error, OSError) as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "nlp_toolkit": self.check_nlp_toolkit(),
        }

        system_metrics = self.get_system_metrics()

        # Determine overall status
        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": system_metrics,
            "unhealthy_components": unhealthy_checks
        }

# Global health checker instance
health_checker = HealthChecker()

def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
