import logging
from http.server import HTTPServer, BaseHTTPRequestHandler
import threading

from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

# Metrics
LISTINGS_CREATED = Counter('listings_created_total', 'Number of new canonical listings created')
LISTINGS_MERGED = Counter('listings_merged_total', 'Number of candidates merged into an existing listing')
VALIDATION_ERRORS = Counter('listing_validation_errors_total', 'Number of candidates rejected by validation')
MERGE_CONFLICTS = Counter('merge_conflicts_total', 'Number of concurrent-write conflicts during ingestion')
MULTIPLE_DUPLICATES = Counter('multiple_duplicates_total', 'Number of lookups that matched more than one listing')
STORE_ERRORS = Counter('store_errors_total', 'Number of record store failures')
ALERTS_SENT = Counter('alerts_sent_total', 'Number of saved-search alerts handed to delivery')


class MetricsHandler(BaseHTTPRequestHandler):
    """Serves /metrics for Prometheus and /health for health checks"""

    def do_GET(self):
        if self.path == '/metrics':
            self._reply(200, CONTENT_TYPE_LATEST, generate_latest())
        elif self.path == '/health':
            self._reply(200, 'application/json', b'{"status": "healthy"}')
        else:
            self._reply(404, 'text/plain', b'not found')

    def _reply(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug(f"metrics endpoint: {format % args}")


def start_metrics_server(port: int) -> HTTPServer:
    server = HTTPServer(('0.0.0.0', port), MetricsHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info(f"Prometheus metrics server with health endpoint started on port {port}")
    return server
