"""
Helpdesk Ticket Store Demo
==========================
Walks through the API against a running server.

Prerequisites:
    # Terminal 1 - API
    uv run uvicorn helpdesk.api.main:app --host 0.0.0.0 --port 8000

    # Terminal 2 - Demo
    uv run python demo.py
"""
from datetime import datetime, timedelta, timezone

import httpx

BASE = "http://localhost:8000"
SEP = "=" * 60

client = httpx.Client(base_url=BASE, timeout=10.0)


def banner(title: str) -> None:
    print(f"\n{SEP}")
    print(f"  {title}")
    print(SEP)


# ─────────────────────────────────────────────────────────────
# 1. Health check
# ─────────────────────────────────────────────────────────────
banner("1. Health Check  GET /health")
h = client.get("/health").json()
print(f"  Status      : {h['status']}")
print(f"  Tickets     : {h['tickets']}")
print(f"  Storage     : {h['storage']}")
print(f"  Departments : {h['departments']}")

input("\n  [Press Enter to continue]\n")

# ─────────────────────────────────────────────────────────────
# 2. Open tickets with a blank department (POST /tickets)
# ─────────────────────────────────────────────────────────────
banner("2. Open Tickets  POST /tickets")
print("  Department left blank, so the keyword classifier pre-fills it.\n")

now = datetime.now(timezone.utc)
new_tickets = [
    {
        "title": "Computador sem acesso a rede",
        "description": "Erro de login desde a manha",
        "priority": "Alta",
        "slaDeadline": (now + timedelta(hours=1)).isoformat(),
        "expected": "T.I",
    },
    {
        "title": "Boleto em atraso",
        "description": "Pagamento do fornecedor nao compensou",
        "priority": "Média",
        "slaDeadline": (now + timedelta(hours=30)).isoformat(),
        "expected": "Financeiro",
    },
    {
        "title": "Ferias e holerite",
        "description": "Colaborador sem beneficio no vale",
        "priority": "Baixa",
        "expected": "RH",
    },
    {
        "title": "Linha de produção parada",
        "description": "Máquina aguardando manutenção",
        "priority": "Crítica",
        "slaDeadline": (now - timedelta(hours=1)).isoformat(),
        "expected": "Produção",
    },
]

created = []
print(f"  {'Id':<14} {'Title':<35} {'Department':<12}")
print(f"  {'-'*14} {'-'*35} {'-'*12}")
for t in new_tickets:
    payload = {k: v for k, v in t.items() if k != "expected"}
    d = client.post("/tickets", json=payload).json()
    created.append(d)
    match = "✓" if d["department"] == t["expected"] else "?"
    print(f"  {d['id']:<14} {d['title'][:35]:<35} {d['department'] or '-':<12} {match}")

input("\n  [Press Enter to continue]\n")

# ─────────────────────────────────────────────────────────────
# 3. SLA status (GET /tickets/{id}/sla)
# ─────────────────────────────────────────────────────────────
banner("3. SLA Status  GET /tickets/{id}/sla")
print(f"  {'Id':<14} {'Status':<10} {'Hours left'}")
print(f"  {'-'*14} {'-'*10} {'-'*10}")
for d in created:
    s = client.get(f"/tickets/{d['id']}/sla").json()
    hours = s["hours_until_deadline"]
    hours_s = f"{hours:.1f}" if hours is not None else "---"
    print(f"  {d['id']:<14} {s['status']:<10} {hours_s}")

input("\n  [Press Enter to continue]\n")

# ─────────────────────────────────────────────────────────────
# 4. Upcoming deadlines (GET /tickets/upcoming)
# ─────────────────────────────────────────────────────────────
banner("4. Upcoming Deadlines  GET /tickets/upcoming")
for i, d in enumerate(client.get("/tickets/upcoming", params={"limit": 5}).json(), 1):
    print(f"  #{i:<3d} {d['id']:<14} {d['slaDeadline'] or 'no deadline'}")

input("\n  [Press Enter to continue]\n")

# ─────────────────────────────────────────────────────────────
# 5. Update and resolve (PATCH /tickets/{id})
# ─────────────────────────────────────────────────────────────
banner("5. Resolve  PATCH /tickets/{id}")
first = created[0]
d = client.patch(f"/tickets/{first['id']}", json={"status": "Resolvido"}).json()
print(f"  {d['id']}  status={d['status']}  updatedAt={d['updatedAt']}")

# ─────────────────────────────────────────────────────────────
# 6. Ad-hoc classification (POST /classify)
# ─────────────────────────────────────────────────────────────
banner("6. Classify  POST /classify")
for title in ("Impressora sem toner", "Nota fiscal duplicada", "Pedido generico"):
    d = client.post("/classify", json={"title": title}).json()
    dept = d["department"]["name"] if d["department"] else "(manual)"
    print(f"  {title:<35} → {dept}")

print(f"\n{SEP}\n  Demo complete.\n{SEP}")
client.close()
