#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging.config
import os
import shutil

import yaml

from constants import BotMode
from utils.jid import numeric_prefix

DEFAULT_PREFIXES = ["."]
DEFAULT_GROUP_CACHE_TTL = 60 * 60


class Config(object):
    def __init__(self, path: str | None = None) -> None:
        pwd = os.path.dirname(os.path.abspath(__file__))
        self.path = path or f"{pwd}/config.yaml"
        self.template_path = f"{pwd}/config.yaml.template"
        self.reload()

    @staticmethod
    def _normalize_prefixes(value) -> list[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return list(DEFAULT_PREFIXES)
        prefixes = [str(item) for item in value if isinstance(item, (str, int)) and str(item)]
        return prefixes or list(DEFAULT_PREFIXES)

    @staticmethod
    def _normalize_owners(value) -> list[str]:
        if isinstance(value, (str, int)):
            value = [value]
        if not isinstance(value, (list, tuple, set)):
            return []
        owners = []
        for item in value:
            cleaned = str(item).strip().lstrip("+")
            if cleaned:
                owners.append(cleaned)
        return owners

    @staticmethod
    def _positive_int(value, fallback: int) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError):
            return fallback
        return number if number >= 0 else fallback

    def _load_config(self) -> dict:
        try:
            with open(self.path, "rb") as fp:
                yconfig = yaml.safe_load(fp)
        except FileNotFoundError:
            shutil.copyfile(self.template_path, self.path)
            with open(self.path, "rb") as fp:
                yconfig = yaml.safe_load(fp)

        return yconfig or {}

    def reload(self) -> None:
        yconfig = self._load_config()
        if yconfig.get("logging"):
            logging.config.dictConfig(yconfig["logging"])

        bot = yconfig.get("bot", {}) or {}
        self.BOT_NAME = bot.get("name", "BaseBot")
        self.BOT_MODE = BotMode.from_config(bot.get("mode"))
        self.PREFIXES = self._normalize_prefixes(bot.get("prefix", DEFAULT_PREFIXES))
        self.OWNERS = self._normalize_owners(bot.get("owner", []))
        self.PHONE = str(bot.get("phone", "") or "")
        self.USE_PAIRING = bool(bot.get("use_pairing", False))

        group_cache = yconfig.get("group_cache", {}) or {}
        self.GROUP_CACHE_TTL = self._positive_int(group_cache.get("ttl"), DEFAULT_GROUP_CACHE_TTL)

        rate_limit = yconfig.get("rate_limit", {}) or {}
        self.RATE_LIMIT = {
            "max_messages": self._positive_int(rate_limit.get("max_messages"), 0),
            "window": self._positive_int(rate_limit.get("window"), 60),
        }

    def is_owner(self, *jids: str | None) -> bool:
        """按号码前缀判断是否为机器人主人（同时兼容 lid / 手机号两种形式）"""
        owner_numbers = {numeric_prefix(owner) for owner in self.OWNERS}
        owner_numbers.discard(None)
        return any(numeric_prefix(jid) in owner_numbers for jid in jids if jid)
