import pytest

from treasury.models import Center, MovementCategory, MovementType, Transaction


@pytest.fixture
def movement_types():
    return (
        MovementType("ing_ofrendas", "OFRENDAS", MovementCategory.INCOME, "ENTRADAS"),
        MovementType("ing_ofrendas_misioneras", "OFRENDAS MISIONERAS", MovementCategory.INCOME, "ENTRADAS"),
        MovementType("egr_construcciones", "CONSTRUCCIONES", MovementCategory.EXPENSE, "INVERSIONES"),
        MovementType("egr_accion_social", "ACCIÓN SOCIAL", MovementCategory.EXPENSE,
                     "GASTOS ESPECIFICOS DE MINISTERIO"),
        MovementType("egr_alquileres", "ALQUILERES", MovementCategory.EXPENSE, "GASTOS GENERALES"),
        MovementType("egr_varios", "VARIOS", MovementCategory.EXPENSE),
    )


@pytest.fixture
def centers():
    return (
        Center("c1", "Sede Central", "HQ"),
        Center("c2", "Anexo Norte", "NRT"),
    )


@pytest.fixture
def make_txn():
    counter = {"n": 0}

    def factory(date, movement_type_id, amount, currency="ARS", **kwargs):
        counter["n"] += 1
        return Transaction(
            id=kwargs.pop("id", f"t{counter['n']}"),
            date=date,
            center_id=kwargs.pop("center_id", "c1"),
            movement_type_id=movement_type_id,
            detail=kwargs.pop("detail", ""),
            amount=amount,
            currency=currency,
            **kwargs,
        )

    return factory


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("TREASURY_CONFIG", str(tmp_path / "no-config.json"))
