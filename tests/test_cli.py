from datetime import datetime

from cli.documents import run_cli


def test_contract_command_writes_pdf(store, tmp_path, capsys):
    output = tmp_path / "contrato.pdf"
    assert run_cli(["contract", "tenant-1", "--template", "legal", "-o", str(output)], store=store) == 0
    assert output.read_bytes().startswith(b"%PDF")
    assert "Wrote" in capsys.readouterr().out


def test_room_ad_command_missing_room(store, tmp_path, capsys):
    output = tmp_path / "anuncio.pdf"
    assert run_cli(["room-ad", "prop-1", "ghost", "-o", str(output)], store=store) == 1
    assert not output.exists()


def test_room_ad_command_defaults_to_vacant_room(store, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("rentals.documents.download_images", lambda urls, limit=6, timeout=10.0: [])
    monkeypatch.chdir(tmp_path)
    assert run_cli(["room-ad", "prop-1"], store=store) == 0
    assert (tmp_path / "anuncio_prop-1.pdf").read_bytes().startswith(b"%PDF")


def test_alerts_command_lists_unpaid_rent(store, capsys):
    assert run_cli(["alerts"], store=store, now=datetime(2026, 10, 19, 9, 0)) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "[WARNING ] Piso Centro: Pago pendiente — Habitación 1 - 380,00 € sin cobrar este mes",
        "1 pending payment(s).",
    ]


def test_alerts_command_after_rent_is_paid(store, capsys):
    store.mark_income_paid("inc-1")
    assert run_cli(["alerts"], store=store, now=datetime(2026, 10, 19, 9, 0)) == 0
    assert capsys.readouterr().out.strip() == "No alerts."
