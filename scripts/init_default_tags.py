"""
初始化默认帖子标签和服务分类的脚本
"""
# 标准库导包
import asyncio
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# 项目内部导包
from storage import async_session_factory, cleanup_db
from routers.services.taxonomy_service import TaxonomyService


# 默认帖子标签
DEFAULT_TAGS = [
    "design",
    "illustration",
    "photography",
    "music",
    "video",
    "writing",
    "tutorial",
    "showcase",
]

# 默认服务分类
DEFAULT_CATEGORIES = [
    "branding",
    "web design",
    "animation",
    "audio production",
    "copywriting",
    "consulting",
]


def _print_outcomes(label: str, outcomes) -> int:
    """打印每个名称的处理结果，返回失败数量"""
    failed = 0
    for outcome in outcomes:
        if outcome.error is not None:
            print(f"  ✗ {label}创建失败: {outcome.name} ({outcome.error})")
            failed += 1
        elif outcome.created:
            print(f"  ✓ 创建{label}: {outcome.name}")
        else:
            print(f"  - 跳过已存在的{label}: {outcome.name}")
    return failed


async def init_default_items() -> int:
    """初始化默认标签和服务分类"""
    print("开始初始化默认标签和服务分类...")

    async with async_session_factory() as session:
        try:
            tag_outcomes = await TaxonomyService.for_tags(session).ensure_items(DEFAULT_TAGS)
            category_outcomes = await TaxonomyService.for_service_categories(session).ensure_items(DEFAULT_CATEGORIES)
            await session.commit()
        except Exception as e:
            await session.rollback()
            print(f"✗ 初始化失败: {str(e)}")
            import traceback
            traceback.print_exc()
            return 1

    failed = _print_outcomes("标签", tag_outcomes) + _print_outcomes("分类", category_outcomes)
    created = sum(1 for outcome in tag_outcomes + category_outcomes if outcome.created)
    print(f"\n完成！新建了 {created} 个名称项，失败 {failed} 个。")
    return 1 if failed else 0


async def main():
    """主函数"""
    try:
        return await init_default_items()
    finally:
        # 清理数据库连接
        await cleanup_db()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
