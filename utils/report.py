"""
Дневной отчёт по выручке с разбивкой по способу оплаты
"""
import csv
import io
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Tuple

from database.catalog import get_item
from database.models import PAYMENT_METHODS, Session
from utils.pricing import rate_category

# (тип корта, категория тарифа, количество дисконтных карт)
RateKey = Tuple[str, str, int]


@dataclass
class BreakdownEntry:
    """Количество и выручка по строке отчёта"""
    count: int = 0
    revenue: float = 0.0

    @property
    def average(self) -> float:
        return self.revenue / self.count if self.count else 0.0


@dataclass
class PaymentReport:
    """Итоги по одному способу оплаты"""
    total_sessions: int = 0
    total_revenue: float = 0.0
    rate_breakdown: Dict[RateKey, BreakdownEntry] = field(default_factory=dict)
    equipment: Dict[str, BreakdownEntry] = field(default_factory=dict)
    refreshments: Dict[str, BreakdownEntry] = field(default_factory=dict)

    def add(self, session: Session):
        self.total_sessions += 1
        self.total_revenue += session.cost

        # Выручка корта: стоимость сессии без позиций каталога
        court_revenue = session.cost
        for item in session.items:
            item_def = get_item(item.item_id)
            if item_def is None:
                continue
            revenue = item_def.price * item.quantity
            court_revenue -= revenue

            group = self.refreshments if item_def.category == 'refreshment' else self.equipment
            entry = group.setdefault(item.item_id, BreakdownEntry())
            entry.count += item.quantity
            entry.revenue += revenue

        key = (session.type, rate_category(session), session.discount_cards)
        entry = self.rate_breakdown.setdefault(key, BreakdownEntry())
        entry.count += 1
        entry.revenue += court_revenue

    def sorted_rates(self) -> List[Tuple[RateKey, BreakdownEntry]]:
        """Тарифы по убыванию средней выручки за сессию"""
        return sorted(self.rate_breakdown.items(), key=lambda pair: -pair[1].average)


@dataclass
class DayReport:
    """Отчёт за день"""
    date: date
    cash: PaymentReport = field(default_factory=PaymentReport)
    card: PaymentReport = field(default_factory=PaymentReport)

    @property
    def grand_total(self) -> float:
        return self.cash.total_revenue + self.card.total_revenue

    @property
    def total_sessions(self) -> int:
        return self.cash.total_sessions + self.card.total_sessions

    def by_method(self, method: str) -> PaymentReport:
        return self.cash if method == 'cash' else self.card

    def rate_keys(self) -> List[RateKey]:
        """Ключи тарифов обоих способов оплаты по убыванию средней выручки"""
        combined: Dict[RateKey, BreakdownEntry] = {}
        for report in (self.cash, self.card):
            for key, entry in report.rate_breakdown.items():
                total = combined.setdefault(key, BreakdownEntry())
                total.count += entry.count
                total.revenue += entry.revenue
        return [key for key, _ in sorted(combined.items(), key=lambda pair: -pair[1].average)]


def is_reportable(session: Session, target_date: date) -> bool:
    """Оплаченная завершённая сессия, закрытая в указанный день"""
    return (
        session.status == 'finished'
        and session.payment_status == 'paid'
        and session.payment_method in PAYMENT_METHODS
        and session.end_time is not None
        and session.end_time.date() == target_date
    )


def build_day_report(sessions: Iterable[Session], target_date: date) -> DayReport:
    """Сводка оплаченных сессий за день по способам оплаты"""
    report = DayReport(date=target_date)
    for session in sessions:
        if is_reportable(session, target_date):
            report.by_method(session.payment_method).add(session)
    return report


def rate_key_label(key: RateKey) -> str:
    """Подпись строки тарифа в отчёте"""
    court_type, category, discount_cards = key
    labels = {
        'day': 'Day Rate (7-17)',
        'evening': 'Evening Rate (17-23)',
        'weekend': 'Weekend Rate',
        'student': 'Student Rate',
        'subscription': 'Subscription',
        'fixed': 'Fixed Rate',
    }
    court = 'Squash' if court_type == 'squash' else 'Table Tennis'
    label = f"{court} - {labels.get(category, category)}"
    if discount_cards:
        label += f" ({discount_cards} discount card{'s' if discount_cards > 1 else ''})"
    return label


def report_filename(target_date: date) -> str:
    return f"day-report-{target_date.isoformat()}.csv"


def export_day_report_csv(report: DayReport) -> str:
    """
    Плоская CSV-таблица отчёта: группы Court Revenue / Equipment / Refreshments,
    разделённые пустыми строками, затем итоги по способам оплаты
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([
        'Category', 'Item', 'Cash Qty', 'Cash Revenue',
        'Card Qty', 'Card Revenue', 'Total Qty', 'Total Revenue',
    ])

    def row(category: str, name: str, cash: BreakdownEntry, card: BreakdownEntry):
        writer.writerow([
            category, name,
            cash.count, _money(cash.revenue),
            card.count, _money(card.revenue),
            cash.count + card.count, _money(cash.revenue + card.revenue),
        ])

    empty = BreakdownEntry()
    for key in report.rate_keys():
        row('Court Revenue', rate_key_label(key),
            report.cash.rate_breakdown.get(key, empty),
            report.card.rate_breakdown.get(key, empty))
    writer.writerow([])

    for category, attr in (('Equipment', 'equipment'), ('Refreshments', 'refreshments')):
        cash_group = getattr(report.cash, attr)
        card_group = getattr(report.card, attr)
        for item_id in list(dict.fromkeys([*cash_group, *card_group])):
            item = get_item(item_id)
            row(category, item.name if item else item_id,
                cash_group.get(item_id, empty), card_group.get(item_id, empty))
        writer.writerow([])

    writer.writerow(['Cash Total', '', report.cash.total_sessions, _money(report.cash.total_revenue)])
    writer.writerow(['Card Total', '', '', '', report.card.total_sessions, _money(report.card.total_revenue)])
    writer.writerow(['Grand Total', '', '', '', '', '', report.total_sessions, _money(report.grand_total)])
    return buffer.getvalue()


def format_day_report(report: DayReport, currency: str) -> str:
    """Текст отчёта для сообщения"""
    lines = [
        f"📊 Отчёт за {report.date.strftime('%d.%m.%Y')}",
        f"💰 Итого: {_money(report.grand_total)} {currency} ({report.total_sessions} сессий)",
    ]

    for method, title in (('cash', '💵 Наличные'), ('card', '💳 Карта')):
        part = report.by_method(method)
        lines.append("")
        lines.append(f"{title}: {_money(part.total_revenue)} {currency} ({part.total_sessions} сессий)")
        for key, entry in part.sorted_rates():
            lines.append(f"   • {rate_key_label(key)}: {entry.count}x, {_money(entry.revenue)} {currency}")
        for group in (part.equipment, part.refreshments):
            for item_id, entry in group.items():
                item = get_item(item_id)
                name = item.name if item else item_id
                lines.append(f"   • {name}: {entry.count}x, {_money(entry.revenue)} {currency}")

    return "\n".join(lines)


def _money(value: float) -> str:
    return f"{value:.2f}"
