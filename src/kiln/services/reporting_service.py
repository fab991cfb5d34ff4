from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from kiln.services.aggregation import due_report, ledger_stats, sales_between, summarize_sales


class ReportingService:
    def __init__(self, store):
        self.store = store

    def export_sales_report_excel(self, path: str, start_date: str, end_date: str) -> None:
        entries = self.store.entries
        sales = sales_between(entries, start_date, end_date)
        summary = summarize_sales(sales)
        stats = ledger_stats(entries)
        dues = due_report(entries)

        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = f"{start_date}  ->  {end_date}"

        rows = [
            ("Memos", len(sales), "int"),
            ("Bricks sold", int(summary.total_bricks), "int"),
            ("Invoiced amount", float(summary.total_amount), "money"),
            ("Parties", int(summary.total_parties), "int"),
            ("Total sales (all time)", float(stats.total_sales), "money"),
            ("Total expenses (all time)", float(stats.total_expenses), "money"),
            ("Profit / loss", float(stats.profit), "money"),
            ("Net cash", float(stats.net_cash), "money"),
            ("Outstanding due", float(dues.total_due), "money"),
        ]

        start_row = 5
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])

        set_widths(ws, {"A": 28, "B": 34})

        # -------- 2) Sales Detail --------
        ws2 = wb.create_sheet("Sales Detail")
        ws2.append([
            "Challan", "Date", "Customer", "Address", "Vehicle",
            "Brick Type", "Qty", "Rate", "Line Total",
            "Paid", "Due", "Status",
        ])
        bold_row(ws2, 1)

        out_row = 2
        for s in sales:
            for it in s.items:
                ws2.append([
                    s.challan_no, s.timestamp.strftime("%Y-%m-%d %H:%M"), s.customer_name or "",
                    s.customer_address or "", s.vehicle_no or "",
                    it.brick_type, it.qty, float(it.rate), float(it.line_total),
                    float(s.paid_amount or 0), float(s.due_amount or 0),
                    "SETTLED" if s.is_settled else (s.payment_status or ""),
                ])
                for col in ("H", "I", "J", "K"):
                    money(ws2[f"{col}{out_row}"])
                out_row += 1

        ws2.freeze_panes = "A2"
        set_widths(ws2, {
            "A": 10, "B": 18, "C": 26, "D": 26, "E": 14,
            "F": 16, "G": 8, "H": 12, "I": 14,
            "J": 14, "K": 14, "L": 10,
        })
        if ws2.max_row >= 2:
            add_table(ws2, "SalesDetail", 1, 1, ws2.max_row, 12)

        # -------- 3) Dues --------
        ws3 = wb.create_sheet("Dues")
        ws3["A1"] = "Outstanding dues"
        ws3["A1"].font = Font(bold=True, size=14)

        ws3["A3"] = "Total due"
        ws3["B3"] = float(dues.total_due)
        money(ws3["B3"])

        ws3.append([])
        ws3.append(["Challan", "Date", "Customer", "Amount", "Paid", "Due", "Settled"])
        bold_row(ws3, 5)

        out_row = 6
        for e in dues.rows:
            ws3.append([
                e.challan_no, e.timestamp.strftime("%Y-%m-%d"), e.customer_name or "",
                float(e.amount), float(e.paid_amount or 0), float(e.due_amount or 0),
                "yes" if e.is_settled else "no",
            ])
            for col in ("D", "E", "F"):
                money(ws3[f"{col}{out_row}"])
            out_row += 1

        ws3.freeze_panes = "A6"
        set_widths(ws3, {"A": 10, "B": 14, "C": 26, "D": 14, "E": 14, "F": 14, "G": 10})
        if ws3.max_row >= 6:
            add_table(ws3, "DueDetail", 5, 1, ws3.max_row, 7)

        wb.save(path)
