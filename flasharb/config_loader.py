"""
FlashArb-Pair 配置加载器

加载静态 JSON 配置，并合并环境变量（通过 python-dotenv 读取 .env）中的覆盖项。
操作员私钥等敏感信息只从环境变量读取。
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_keys.exceptions import ValidationError as KeyValidationError

from .calculator import DEFAULT_FEE, FEE_DENOMINATOR, PRICE_PRECISION, SQRT_TOLERANCE
from .exceptions import ConfigValidationError

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass
class ArbitrageConfig:
    """套利配置"""

    wnative_address: str
    base_tokens: List[str] = field(default_factory=list)
    log_level: str = "info"
    minimum_profit: int = 0          # 基础代币最小单位
    default_fee: int = DEFAULT_FEE   # 百万分之一
    price_precision: int = PRICE_PRECISION
    sqrt_tolerance: int = SQRT_TOLERANCE

    # 仅从环境变量加载
    operator_address: Optional[str] = None


def _is_address(value: Any) -> bool:
    if not isinstance(value, str) or not value.startswith("0x") or len(value) != 42:
        return False
    try:
        int(value[2:], 16)
    except ValueError:
        return False
    return True


class ConfigLoader:
    """
    FlashArb-Pair 配置管理器

    从 JSON 文件加载套利配置，并与环境变量中的覆盖项和私钥结合。

    使用示例:
        >>> loader = ConfigLoader()
        >>> config = loader.load()
        >>> print(config.base_tokens)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_path: Optional[str] = None
    ) -> None:
        """
        初始化配置加载器

        参数:
            config_path: arbitrage.json 文件路径，默认为 config/arbitrage.json
            env_path: .env 文件路径，默认为项目根目录的 .env
        """
        self._project_root = self._find_project_root()

        env_file = Path(env_path) if env_path else self._project_root / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        config_file = Path(config_path) if config_path else self._project_root / "config" / "arbitrage.json"
        self._raw_config = self._load_json_config(config_file)

    def _find_project_root(self) -> Path:
        """向上查找项目根目录（config 文件夹或 .git）"""
        current = Path(__file__).resolve().parent
        for _ in range(5):
            if (current / "config").exists() or (current / ".git").exists():
                return current
            current = current.parent
        return Path(__file__).resolve().parent.parent

    def _load_json_config(self, path: Path) -> Dict[str, Any]:
        """
        加载并验证 JSON 配置文件

        异常:
            ConfigValidationError: 文件不存在或 JSON 格式无效
        """
        if not path.exists():
            raise ConfigValidationError(f"config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"invalid JSON in {path}: {e}")

        if not isinstance(config, dict):
            raise ConfigValidationError("config must be a JSON object")

        return config

    def _apply_env_overrides(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """环境变量优先于 JSON 配置"""
        merged = dict(raw)

        if os.getenv("LOG_LEVEL"):
            merged["log_level"] = os.getenv("LOG_LEVEL")
        if os.getenv("WNATIVE_ADDRESS"):
            merged["wnative_address"] = os.getenv("WNATIVE_ADDRESS")
        if os.getenv("BASE_TOKENS"):
            merged["base_tokens"] = [
                t.strip() for t in os.getenv("BASE_TOKENS", "").split(",") if t.strip()
            ]

        for env_key, name in (
            ("MINIMUM_PROFIT", "minimum_profit"),
            ("POOL_FEE", "default_fee"),
            ("SQRT_TOLERANCE", "sqrt_tolerance"),
        ):
            value = os.getenv(env_key)
            if value:
                try:
                    merged[name] = int(value)
                except ValueError:
                    raise ConfigValidationError(f"{env_key} must be an integer, got {value!r}")

        return merged

    def _validate(self, config: Dict[str, Any]) -> None:
        if "wnative_address" not in config:
            raise ConfigValidationError("missing required field 'wnative_address'")
        if not _is_address(config["wnative_address"]):
            raise ConfigValidationError(f"invalid wnative_address: {config['wnative_address']}")

        base_tokens = config.get("base_tokens", [])
        if not isinstance(base_tokens, list):
            raise ConfigValidationError("base_tokens must be a list")
        for token in base_tokens:
            if not _is_address(token):
                raise ConfigValidationError(f"invalid base token address: {token}")

        level = str(config.get("log_level", "info")).lower()
        if level not in LOG_LEVELS:
            raise ConfigValidationError(f"invalid log_level: {level}")

        fee = config.get("default_fee", DEFAULT_FEE)
        if not isinstance(fee, int) or not 0 <= fee < FEE_DENOMINATOR:
            raise ConfigValidationError(f"default_fee must be in [0, {FEE_DENOMINATOR}) pips, got {fee}")

        tolerance = config.get("sqrt_tolerance", SQRT_TOLERANCE)
        if not isinstance(tolerance, int) or tolerance < 1:
            raise ConfigValidationError(f"sqrt_tolerance must be a positive integer, got {tolerance}")

        precision = config.get("price_precision", PRICE_PRECISION)
        if not isinstance(precision, int) or precision < 0:
            raise ConfigValidationError(f"price_precision must be a non-negative integer, got {precision}")

        minimum_profit = config.get("minimum_profit", 0)
        if not isinstance(minimum_profit, int) or minimum_profit < 0:
            raise ConfigValidationError(f"minimum_profit must be a non-negative integer, got {minimum_profit}")

    def _operator_address(self) -> Optional[str]:
        """由 PRIVATE_KEY 推导操作员地址，未设置时返回 None"""
        private_key = os.getenv("PRIVATE_KEY")
        if not private_key:
            return None
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        try:
            return Account.from_key(private_key).address
        except (ValueError, KeyValidationError) as e:
            raise ConfigValidationError(f"invalid PRIVATE_KEY: {e}") from e

    def load(self) -> ArbitrageConfig:
        """
        生成最终生效的配置

        返回:
            ArbitrageConfig 对象

        异常:
            ConfigValidationError: 缺少必填字段或取值无效
        """
        raw = self._apply_env_overrides(self._raw_config)
        self._validate(raw)

        return ArbitrageConfig(
            wnative_address=raw["wnative_address"],
            base_tokens=list(raw.get("base_tokens", [])),
            log_level=str(raw.get("log_level", "info")).lower(),
            minimum_profit=raw.get("minimum_profit", 0),
            default_fee=raw.get("default_fee", DEFAULT_FEE),
            price_precision=raw.get("price_precision", PRICE_PRECISION),
            sqrt_tolerance=raw.get("sqrt_tolerance", SQRT_TOLERANCE),
            operator_address=self._operator_address(),
        )


def load_config(config_path: Optional[str] = None) -> ArbitrageConfig:
    """快捷函数：加载配置"""
    return ConfigLoader(config_path).load()
