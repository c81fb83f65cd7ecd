"""
Configuration pytest.

Les tests n'appellent jamais le backend hébergé: les clients httpx sont
remplacés par des mocks. Ce fichier fixe les variables d'environnement
requises par les settings avant tout import de l'application.
"""

import os

# Variables d'environnement pour les tests
# Respecte les variables déjà définies (ex: dans la CI)
TEST_ENV = {
    "BACKEND_URL": os.getenv("BACKEND_URL", "http://localhost:54321"),
    "BACKEND_API_KEY": os.getenv("BACKEND_API_KEY", "test-anon-key"),
    "ENVIRONMENT": os.getenv("ENVIRONMENT", "test"),
    "DEBUG": os.getenv("DEBUG", "false"),
    "OTEL_SERVICE_NAME": os.getenv("OTEL_SERVICE_NAME", "clinic-desk-test"),
    "OTEL_TRACES_EXPORTER": os.getenv("OTEL_TRACES_EXPORTER", "none"),
    "OTEL_METRICS_EXPORTER": os.getenv("OTEL_METRICS_EXPORTER", "none"),
    "OTEL_LOGS_EXPORTER": os.getenv("OTEL_LOGS_EXPORTER", "none"),
    "AUTH_AUTO_REFRESH": os.getenv("AUTH_AUTO_REFRESH", "true"),
    "SESSION_STORAGE_PATH": os.getenv("SESSION_STORAGE_PATH", ".pytest-session/session.json"),
}

# Appliquer les variables d'environnement de test (ne remplace pas si déjà définies)
for key, value in TEST_ENV.items():
    if key not in os.environ:
        os.environ[key] = value
