#!/usr/bin/env python3
"""
系统完整性检查
"""
import sys
import os
sys.path.append(os.path.dirname(__file__))

def check_imports():
    """检查所有关键模块是否能正常导入"""
    print("🔍 检查模块导入...")

    try:
        from commands import MessageContext, MessageNormalizer
        from groups import Group, GroupStateCache
        from handlers import HandlerChain, create_default_chain
        from plugins import PluginRegistry, create_default_registry
        print("✅ 核心模块导入成功")

        from dispatcher import Dispatcher
        from bot import BaseBot
        print("✅ 分发器与机器人导入成功")

        return True
    except Exception as e:
        print(f"❌ 导入失败: {e}")
        return False

def check_plugin_registration():
    """检查内置插件是否注册正常"""
    print("\n🔍 检查插件注册...")

    try:
        from plugins import create_default_registry
        registry = create_default_registry()
        commands = registry.get_command_names()

        required_commands = ['ping', 'cekadmin', 'checkadmin', 'reload']
        missing_commands = [name for name in required_commands if name not in commands]

        if missing_commands:
            print(f"❌ 缺少命令: {missing_commands}")
            return False

        print(f"✅ 已注册 {len(registry)} 个插件: {commands}")
        return True

    except Exception as e:
        print(f"❌ 插件注册检查失败: {e}")
        return False

def check_handler_chain():
    """检查预处理链"""
    print("\n🔍 检查预处理链...")

    try:
        from handlers import create_default_chain
        chain = create_default_chain()
        priorities = [h.priority for h in chain.handlers]
        if priorities != sorted(priorities):
            print(f"❌ 预处理器顺序异常: {priorities}")
            return False

        print(f"✅ 预处理链: {[h.name for h in chain.handlers]}")
        return True

    except Exception as e:
        print(f"❌ 预处理链检查失败: {e}")
        return False

def check_config_compatibility():
    """检查配置模板"""
    print("\n🔍 检查配置文件...")

    try:
        import yaml
        path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.yaml.template')
        with open(path, 'r', encoding='utf-8') as f:
            template = yaml.safe_load(f) or {}

        bot = template.get('bot') or {}
        missing = [key for key in ('name', 'mode', 'prefix', 'owner') if key not in bot]
        if missing:
            print(f"❌ config.yaml.template 的 bot 段缺少: {missing}")
            return False

        if 'group_cache' not in template:
            print("❌ config.yaml.template 缺少 group_cache 配置")
            return False

        print("✅ 配置模板完整")
        return True

    except Exception as e:
        print(f"❌ 配置检查失败: {e}")
        return False

def main():
    print("🚀 BaseBot 系统完整性检查\n")

    checks = [
        ("模块导入", check_imports),
        ("插件注册", check_plugin_registration),
        ("预处理链", check_handler_chain),
        ("配置模板", check_config_compatibility)
    ]

    passed = 0
    total = len(checks)

    for name, check_func in checks:
        if check_func():
            passed += 1
        else:
            print(f"❌ {name}检查失败")

    print(f"\n📊 检查结果: {passed}/{total} 通过")

    if passed == total:
        print("🎉 系统完整性检查全部通过！")
        return 0
    else:
        print("⚠️ 部分检查失败，请检查上述错误信息。")
        return 1

if __name__ == "__main__":
    sys.exit(main())
