"""Builders for asset balance statements used across the test modules."""

from asset_palette.models.portfolio import Holding

SUMMARY_BLOCK = (
    "■資産合計欄\n"
    '"種別","時価評価額[円]","前日比[円]"\n'
    '"国内株式","350,000","+1,200"\n'
    "\n"
)

SECTION_LINE = "■ 保有商品詳細 (すべて）\n"

HOLDINGS_HEADER = (
    '"種別","銘柄コード・ティッカー","銘柄","口座","保有数量",'
    '"時価評価額[円]","評価損益[円]"\n'
)

FOOTER_BLOCK = (
    "\n"
    "■参考為替レート\n"
    '"通貨","レート"\n'
    '"USD/JPY","150.00"\n'
)

# Index of the first data row among non-blank lines:
# 3 summary lines, the section line, then the header.
FIRST_DATA_LINE = 5

TOYOTA = '"国内株式","7203","トヨタ自動車","特定","100","250,000","50,000"'
APPLE = '"米国株式","AAPL","アップル","特定","10","300,000","-12,345"'
EMAXIS = '"投資信託","","eMAXIS Slim 全世界株式(オール・カントリー)","NISA成長投資枠","","1,200,000","210,000"'
TOYOTA_NISA = '"国内株式","7203","トヨタ自動車","NISA成長投資枠","50","125,000","-5,000"'


def make_csv(*holding_lines: str, header: str = HOLDINGS_HEADER, footer: bool = True) -> str:
    """Build a statement with the given holding lines under the holdings section."""
    body = "\n".join(holding_lines) + "\n"
    return SUMMARY_BLOCK + SECTION_LINE + header + body + (FOOTER_BLOCK if footer else "")


def make_statement(*holding_lines: str, encoding: str = "utf-8", **kwargs) -> bytes:
    return make_csv(*holding_lines, **kwargs).encode(encoding)


def holding(name: str, value: int, gain_loss: int = 0, type: str = "国内株式",
            account: str = "特定", id: str = None) -> Holding:
    return Holding(
        id=id or f"h_{name}_{account}_{value}",
        type=type,
        name=name,
        account=account,
        value=value,
        gain_loss=gain_loss,
    )
