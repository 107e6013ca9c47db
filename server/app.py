from __future__ import annotations

from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware

from rentals.alerts import LocalAlertService, pending_payment_count
from rentals.config import Settings, load_settings
from rentals.contract import ContractTemplate
from rentals.documents import DocumentService
from rentals.pdf_generator import PDFGenerator
from rentals.reminders import PaymentReminderScheduler
from storage.factory import build_store

load_dotenv()


def _pdf_response(content: bytes, filename: str) -> Response:
    safe_filename = filename.replace(" ", "_").encode("ascii", errors="ignore").decode("ascii") or "document.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{safe_filename}"'},
    )


def create_app(
    store=None,
    *,
    settings: Optional[Settings] = None,
    reminders: Optional[PaymentReminderScheduler] = None,
    documents: Optional[DocumentService] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store if store is not None else build_store(settings)
    alert_service = LocalAlertService(store, reminders=reminders)
    documents = documents or DocumentService(store, PDFGenerator(settings))

    app = FastAPI(title="Rental Manager")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.alerts = alert_service

    @app.get("/api/alerts")
    async def list_alerts() -> Dict[str, Any]:
        alerts = await alert_service.generate_alerts()
        return {
            "alerts": [alert.to_dict() for alert in alerts],
            "pending_payments": pending_payment_count(alerts),
        }

    @app.get("/api/properties/{property_id}/rooms/{room_id}/ad.pdf")
    def room_ad(property_id: str, room_id: str, contact: Optional[str] = Query(default=None)):
        pdf = documents.room_ad(property_id, room_id, owner_contact=contact)
        if pdf is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found.")
        return _pdf_response(pdf, f"anuncio_{room_id}.pdf")

    @app.get("/api/tenants/{tenant_id}/contract.pdf")
    def tenant_contract(tenant_id: str, template: Optional[str] = Query(default=None)):
        if template and template not in {t.value for t in ContractTemplate}:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown template: {template}")
        pdf = documents.contract_for_tenant(tenant_id, template=template)
        if pdf is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant, room or property not found.")
        return _pdf_response(pdf, f"contrato_{tenant_id}.pdf")

    @app.post("/api/income/{income_id}/paid")
    def mark_paid(income_id: str) -> Dict[str, Any]:
        try:
            store.mark_income_paid(income_id)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Income not found.")
        return {"id": income_id, "paid": True}

    @app.post("/api/income/{income_id}/unpaid")
    def mark_unpaid(income_id: str) -> Dict[str, Any]:
        try:
            store.mark_income_unpaid(income_id)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Income not found.")
        return {"id": income_id, "paid": False}

    return app


app = create_app(reminders=PaymentReminderScheduler())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
