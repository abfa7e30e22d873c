import math
from datetime import date

import pytest

from treasury.config import UNKNOWN_MOVEMENT_TYPE_ID
from treasury.csv_import import (
    CSVImportError, detect_delimiter, find_column, import_csv, import_csv_file,
    parse_amount, parse_csv_line, parse_currency, parse_date,
)

HEADER = "Fecha;Monto;Detalle;Moneda;Descripcion_Tipo_Movimiento"


def test_parse_csv_line_quoted_delimiter():
    assert parse_csv_line('a,"b,c",d', ',') == ["a", "b,c", "d"]


def test_parse_csv_line_escaped_quote():
    assert parse_csv_line('a,"b""c",d', ',') == ["a", 'b"c', "d"]


def test_parse_csv_line_unterminated_quote_runs_to_end():
    assert parse_csv_line('a;"b;c', ';') == ["a", "b;c"]


def test_parse_csv_line_keeps_empty_fields():
    assert parse_csv_line(';;x;', ';') == ["", "", "x", ""]


def test_detect_delimiter():
    assert detect_delimiter("Fecha;Monto;Detalle,extra") == ';'
    assert detect_delimiter("Fecha,Monto,Detalle") == ','
    assert detect_delimiter("Fecha;Monto,Detalle") == ';'
    assert detect_delimiter("Fecha") == ';'


@pytest.mark.parametrize("raw", ["1.234,50", "1234.50", "1234,50", "$ 1.234,50", "ARS 1234,50"])
def test_parse_amount_formats(raw):
    assert parse_amount(raw) == pytest.approx(1234.50)


def test_parse_amount_negative_and_parentheses():
    assert parse_amount("-200") == -200
    assert parse_amount("(50,00)") == -50


@pytest.mark.parametrize("raw", ["", None, "abc", "inf", "nan", "1,2,3"])
def test_parse_amount_invalid_is_nan(raw):
    assert math.isnan(parse_amount(raw))


def test_parse_date_day_month_year():
    assert parse_date("05/03/2024") == "2024-03-05"
    assert parse_date("5/3/2024") == "2024-03-05"


def test_parse_date_empty_uses_today():
    assert parse_date("", today=date(2024, 6, 1)) == "2024-06-01"
    assert parse_date(None, today=date(2024, 6, 1)) == "2024-06-01"


def test_parse_date_does_not_validate_calendar():
    assert parse_date("31/02/2024") == "2024-02-31"
    assert parse_date("2024-01-05") == "2024-01-05"


def test_parse_currency():
    assert parse_currency("usd") == "USD"
    assert parse_currency(" u.s.d ") == "USD"
    assert parse_currency("US") == "ARS"
    assert parse_currency("pesos") == "ARS"
    assert parse_currency(None) == "ARS"
    assert parse_currency("x", default="USD") == "USD"


def test_find_column_prefers_earlier_candidate():
    headers = ["fecha", "monto", "monto2"]
    assert find_column(headers, ["monto2", "monto"]) == 2
    assert find_column(headers, ["detalle"]) is None


def test_import_single_row(centers, movement_types):
    content = f"{HEADER}\n01/01/2024;1.500,00;Ofrenda enero;ARS;OFRENDAS\n"

    result = import_csv(content, centers, movement_types)

    assert result.success
    assert result.skipped == 0
    assert len(result.imported) == 1
    txn = result.imported[0]
    assert txn.date == "2024-01-01"
    assert txn.amount == 1500
    assert txn.currency == "ARS"
    assert txn.movement_type_id == "ing_ofrendas"
    assert txn.detail == "Ofrenda enero"
    assert txn.center_id == "c1"


def test_import_prefers_longest_type_name(centers, movement_types):
    content = f"{HEADER}\n02/01/2024;100;x;ARS;OFRENDAS MISIONERAS ESPECIALES"

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].movement_type_id == "ing_ofrendas_misioneras"


def test_import_missing_required_column_aborts(centers, movement_types):
    content = "Fecha;Importe;Detalle\n01/01/2024;100;x"

    result = import_csv(content, centers, movement_types)

    assert not result.success
    assert result.imported == ()
    assert "Monto" in result.reason
    assert result.headers == ("fecha", "importe", "detalle")


def test_import_empty_file_aborts(centers, movement_types):
    result = import_csv("\n\n", centers, movement_types)

    assert not result.success
    assert result.reason


def test_import_header_only_is_empty_success(centers, movement_types):
    result = import_csv(f"{HEADER}\n\n", centers, movement_types)

    assert result.success
    assert result.imported == ()
    assert result.total_rows == 0
    assert result.headers[:2] == ("fecha", "monto")


def test_import_header_only_missing_column_reports_headers(centers, movement_types):
    result = import_csv("Fecha;Importe;Detalle\n", centers, movement_types)

    assert not result.success
    assert result.headers == ("fecha", "importe", "detalle")


def test_import_type_fallback_takes_leftmost_column(centers, movement_types):
    content = "Fecha;Monto;Descripcion;Tipo_Movimiento\n01/01/2024;10;OFRENDAS;17"

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].movement_type_id == "ing_ofrendas"
    assert result.unmatched == 0


def test_import_type_description_column_beats_fallbacks(centers, movement_types):
    content = (
        "Fecha;Monto;Tipo_Movimiento;Descripcion_Tipo_Movimiento\n"
        "01/01/2024;10;17;ALQUILERES"
    )

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].movement_type_id == "egr_alquileres"


def test_import_prefers_monto2(centers, movement_types):
    content = "Fecha;Monto;Monto2;Descripcion\n01/01/2024;1;2;OFRENDAS"

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].amount == 2


def test_import_skips_zero_and_invalid_amounts(centers, movement_types):
    content = "\n".join([
        HEADER,
        "01/01/2024;0;cero;ARS;OFRENDAS",
        "01/01/2024;abc;roto;ARS;OFRENDAS",
        "01/01/2024;10;bien;ARS;OFRENDAS",
    ])

    result = import_csv(content, centers, movement_types)

    assert result.success
    assert result.total_rows == 3
    assert result.skipped == 2
    assert [t.detail for t in result.imported] == ["bien"]
    assert len(result.errors) == 1


def test_import_amounts_are_non_negative(centers, movement_types):
    content = f"{HEADER}\n01/01/2024;-1.000,50;pago;ARS;ALQUILERES"

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].amount == pytest.approx(1000.50)
    assert result.imported[0].movement_type_id == "egr_alquileres"


def test_import_unknown_type_is_kept_with_sentinel(centers, movement_types):
    content = f"{HEADER}\n01/01/2024;50;algo;USD;SUELDOS"

    result = import_csv(content, centers, movement_types)

    assert len(result.imported) == 1
    assert result.imported[0].movement_type_id == UNKNOWN_MOVEMENT_TYPE_ID
    assert result.imported[0].currency == "USD"
    assert result.unmatched == 1


def test_import_classifies_from_detail_without_type_column(centers, movement_types):
    content = 'Fecha,Monto,Detalle\n03/02/2024,"1.200,00",Alquileres de febrero'

    result = import_csv(content, centers, movement_types)

    txn = result.imported[0]
    assert txn.movement_type_id == "egr_alquileres"
    assert txn.amount == 1200
    assert txn.date == "2024-02-03"


def test_import_accent_insensitive_headers_and_types(centers, movement_types):
    content = "FECHA;MONTO;DESCRIPCIÓN\n01/01/2024;10;Acción Social barrio"

    result = import_csv(content, centers, movement_types)

    assert result.imported[0].movement_type_id == "egr_accion_social"
    assert result.imported[0].detail == "Acción Social barrio"


def test_import_defaults(centers, movement_types):
    content = f"{HEADER}\n;10;;;"

    result = import_csv(content, centers, movement_types, default_center_id="c2",
                        today=date(2024, 7, 9))

    txn = result.imported[0]
    assert txn.date == "2024-07-09"
    assert txn.currency == "ARS"
    assert txn.center_id == "c2"
    assert txn.detail == "Importado desde CSV"


def test_import_without_centers_uses_default_center(movement_types):
    result = import_csv(f"{HEADER}\n01/01/2024;10;x;ARS;OFRENDAS", (), movement_types)

    assert result.imported[0].center_id == "default"


def test_import_is_deterministic(centers, movement_types):
    content = "\n".join([
        HEADER,
        "01/01/2024;10;a;ARS;OFRENDAS",
        "01/01/2024;10;a;ARS;OFRENDAS",
        "05/01/2024;20;b;USD;CONSTRUCCIONES",
    ])

    first = import_csv(content, centers, movement_types, today=date(2024, 1, 1))
    second = import_csv(content, centers, movement_types, today=date(2024, 1, 1))

    assert first.imported == second.imported
    # identical rows stay separate records
    assert len({t.id for t in first.imported}) == 3


def test_import_handles_crlf_and_bom(centers, movement_types):
    content = f"\ufeff{HEADER}\r\n01/01/2024;10;x;ARS;OFRENDAS\r\n"

    result = import_csv(content, centers, movement_types)

    assert result.success
    assert len(result.imported) == 1


def test_import_csv_file_reads_latin1(tmp_path, centers, movement_types):
    path = tmp_path / "export.csv"
    path.write_bytes(f"{HEADER}\n01/01/2024;10;Acción;ARS;ACCIÓN SOCIAL\n".encode("iso-8859-1"))

    result = import_csv_file(str(path), centers, movement_types)

    assert result.imported[0].movement_type_id == "egr_accion_social"
    assert result.imported[0].detail == "Acción"


def test_import_csv_file_missing(tmp_path, centers, movement_types):
    with pytest.raises(CSVImportError):
        import_csv_file(str(tmp_path / "missing.csv"), centers, movement_types)


def test_import_csv_file_wrong_suffix(tmp_path, centers, movement_types):
    path = tmp_path / "export.pdf"
    path.write_text("x")

    with pytest.raises(CSVImportError):
        import_csv_file(str(path), centers, movement_types)
