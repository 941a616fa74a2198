"""Tests for CSV holdings import/export."""

import pytest

from src.core.portfolio.csv_io import (
    CSVImportError,
    export_holdings_csv,
    format_number,
    import_holdings_csv,
    parse_holdings_csv,
    parse_number,
)
from src.core.portfolio.repository import HoldingRepository
from src.data.market.models import AssetType

FIELDS = ("symbol", "asset_type", "quantity", "cost_basis_per_unit", "currency", "exchange")


def as_tuple(h):
    return tuple(getattr(h, f) for f in FIELDS)


class TestExport:
    """Tests for export_holdings_csv."""

    def test_header_and_rows(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("VFV", 5, 100, asset_type="ETF")
        repo.create("BTC", 0.25, 50000.5, asset_type="Crypto", currency="CAD")

        text = export_holdings_csv(repo.get_all())

        assert text.splitlines() == [
            "symbol,type,quantity,costBasisPerUnit,currency,exchange",
            "VFV,ETF,5,100,,",
            "BTC,Crypto,0.25,50000.5,CAD,",
        ]

    def test_empty_portfolio_exports_header_only(self):
        assert export_holdings_csv([]) == "symbol,type,quantity,costBasisPerUnit,currency,exchange\n"

    def test_format_number_is_exact(self):
        assert format_number(5.0) == "5"
        assert float(format_number(0.1 + 0.2)) == 0.1 + 0.2


class TestRoundTrip:
    """Export then import yields the same holdings."""

    def test_single_etf(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("VFV", 5, 100, asset_type="ETF")
        before = [as_tuple(h) for h in repo.get_all()]
        old_ids = {h.id for h in repo.get_all()}

        import_holdings_csv(db_session, export_holdings_csv(repo.get_all()))

        after = repo.get_all()
        assert [as_tuple(h) for h in after] == before
        assert before[0] == ("VFV", "ETF", 5, 100, None, None)
        assert {h.id for h in after}.isdisjoint(old_ids)

    def test_order_and_metadata_preserved(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("DOL", 10, 120.37)
        repo.create("BTC", 0.123456789, 48000, asset_type="Crypto", currency="CAD")
        repo.create("XEQT", 3, 29.5, asset_type="ETF", exchange="TSX")
        before = [as_tuple(h) for h in repo.get_all()]

        import_holdings_csv(db_session, export_holdings_csv(repo.get_all()))

        assert [as_tuple(h) for h in repo.get_all()] == before


class TestParse:
    """Tests for parse_holdings_csv."""

    def test_header_case_and_order_insensitive(self):
        text = "Quantity,COSTBASISPERUNIT,Symbol,Type\n2,50000,btc,crypto\n"

        (h,) = parse_holdings_csv(text)

        assert h.symbol == "BTC"
        assert h.asset_type == AssetType.CRYPTO
        assert h.quantity == 2
        assert h.cost_basis_per_unit == 50000

    def test_blank_lines_skipped(self):
        text = "symbol,type,quantity,costBasisPerUnit\n\nDOL,Stock,10,120\n\n,,,\n"

        assert [h.symbol for h in parse_holdings_csv(text)] == ["DOL"]

    def test_missing_cells_default(self):
        text = "symbol,type,quantity,costBasisPerUnit\nENB,,3\n"

        (h,) = parse_holdings_csv(text)

        assert h.asset_type == AssetType.STOCK
        assert h.cost_basis_per_unit == 0

    def test_missing_required_column(self):
        with pytest.raises(CSVImportError) as exc:
            parse_holdings_csv("symbol,quantity\nDOL,10\n")

        assert "costBasisPerUnit" in str(exc.value)
        assert "type" in str(exc.value)

    def test_empty_file(self):
        with pytest.raises(CSVImportError):
            parse_holdings_csv("")

    def test_row_errors_collected(self):
        text = (
            "symbol,type,quantity,costBasisPerUnit\n"
            "DOL,Stock,abc,120\n"
            "ENB,Bond,1,1\n"
            ",Stock,1,1\n"
            "VFV,ETF,-1,1\n"
        )

        with pytest.raises(CSVImportError) as exc:
            parse_holdings_csv(text)

        assert len(exc.value.errors) == 4
        assert exc.value.errors[0].startswith("Row 2:")

    def test_thousands_separator(self):
        assert parse_number("1,234.5", "quantity") == 1234.5

    @pytest.mark.parametrize("value", ["nan", "inf", "-3"])
    def test_rejects_non_finite_and_negative(self, value):
        with pytest.raises(ValueError):
            parse_number(value, "quantity")


class TestImport:
    """Tests for import_holdings_csv."""

    def test_replace_mode(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("AAPL", 1, 100)

        result = import_holdings_csv(
            db_session, "symbol,type,quantity,costBasisPerUnit\nDOL,Stock,10,120\n"
        )

        assert (result.created, result.removed) == (1, 1)
        assert [h.symbol for h in repo.get_all()] == ["DOL"]

    def test_append_mode(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("AAPL", 1, 100)

        result = import_holdings_csv(
            db_session, "symbol,type,quantity,costBasisPerUnit\nDOL,Stock,10,120\n", mode="append"
        )

        assert result.removed == 0
        assert [h.symbol for h in repo.get_all()] == ["AAPL", "DOL"]

    def test_rejected_file_leaves_holdings_untouched(self, db_session):
        repo = HoldingRepository(db_session)
        repo.create("AAPL", 1, 100)

        with pytest.raises(CSVImportError):
            import_holdings_csv(
                db_session,
                "symbol,type,quantity,costBasisPerUnit\nDOL,Stock,10,120\nENB,Stock,x,1\n",
            )

        assert [h.symbol for h in repo.get_all()] == ["AAPL"]

    def test_invalid_mode(self, db_session):
        with pytest.raises(ValueError):
            import_holdings_csv(db_session, "symbol,type,quantity,costBasisPerUnit\n", mode="merge")
