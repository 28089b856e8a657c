"""Centralised configuration — single source of truth for store, classifier and API."""

import os
from pathlib import Path

# ── Paths ────────────────────────────────────────────────────────────────
_PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = _PACKAGE_DIR.parent
STORAGE_DIR = Path(os.getenv("HELPDESK_STORAGE_DIR", str(ROOT_DIR / "data")))

# ── Durable mirror ───────────────────────────────────────────────────────
STORAGE_KEY = os.getenv("HELPDESK_STORAGE_KEY", "tickets")
STORAGE_BACKEND = os.getenv("HELPDESK_STORAGE_BACKEND", "file")  # memory | file | redis
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_KEY_PREFIX = "helpdesk:"

# ── Remote helpdesk API (sync collaborator) ──────────────────────────────
REMOTE_API_URL = os.getenv("HELPDESK_API_URL", "http://localhost:5140/api")
REMOTE_PAGE_SIZE = int(os.getenv("HELPDESK_PAGE_SIZE", "500"))
REMOTE_TIMEOUT_SECONDS = 15.0
REMOTE_MAX_PAGES = int(os.getenv("HELPDESK_MAX_PAGES", "1000"))

# ── Ticket ids ───────────────────────────────────────────────────────────
TICKET_ID_PREFIX = "HD"
TICKET_SEQUENCE_WIDTH = 4  # HD-2024-0001

# ── SLA ──────────────────────────────────────────────────────────────────
CRITICAL_WINDOW_HOURS = 2

# Deadline offsets used only when APPLY_DEFAULT_SLA is on and the
# requester gave no deadline.
SLA_HOURS_BY_PRIORITY: dict[str, int] = {
    "Crítica": 2,
    "Alta": 8,
    "Média": 24,
    "Baixa": 72,
}
APPLY_DEFAULT_SLA = os.getenv("HELPDESK_APPLY_DEFAULT_SLA", "false").lower() in {"1", "true", "yes"}

# ── Department directory (fallback when the remote directory is offline) ─
DEFAULT_DEPARTMENTS: list[dict] = [
    {"id": 1, "name": "T.I"},
    {"id": 2, "name": "Financeiro"},
    {"id": 3, "name": "RH"},
    {"id": 4, "name": "Produção"},
]

# ── Department keywords (classifier heuristic) ──────────────────────────
#    Keys are normalised department names (accents and punctuation removed).
#    Entries may carry accents or be multi-word; they are normalised and
#    tagged phrase/word when the classifier module is imported.
DEPARTMENT_KEYWORDS: dict[str, list[str]] = {
    "ti": [
        "ti", "tecnologia", "informática", "computador", "computadores",
        "pc", "impressora", "impressoras", "rede", "servidor", "servidores",
        "sistema", "sistemas", "software", "hardware", "acesso", "senha",
        "senhas", "login", "vpn", "email", "emails", "periférico",
        "periféricos", "bug", "erro", "crash", "update", "atualização",
        "licença",
    ],
    "financeiro": [
        "financeiro", "pagamento", "pagamentos", "fatura", "faturas",
        "faturamento", "boleto", "boletos", "nota fiscal", "nf",
        "reembolso", "custos", "orçamento", "contábil", "contabilidade",
        "receber", "pagar", "tributo", "imposto",
    ],
    "rh": [
        "rh", "recursos humanos", "folha", "folha pagamento", "benefício",
        "benefícios", "férias", "admissão", "demissão", "colaborador",
        "colaboradores", "funcionário", "funcionários", "holerite", "ponto",
        "cartão ponto", "vale", "recrutamento",
    ],
    "producao": [
        "produção", "linha produção", "linha", "máquina", "máquinas",
        "equipamento", "equipamentos", "manutenção", "manutenções",
        "operação", "operações", "chão fábrica", "fábrica", "industrial",
        "estoque", "insumo", "insumos", "matéria prima",
    ],
}
