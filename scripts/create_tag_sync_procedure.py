"""
创建帖子标签原子更新过程的脚本

PostgreSQL 创建函数，MySQL 创建存储过程（标签列表以JSON数组传入）。
过程内先锁定帖子行，再补齐标签、删除多余关联、插入缺失关联，
同一帖子的并发调用会串行执行。
"""
# 标准库导包
import asyncio
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# 项目内部导包
from storage import engine, cleanup_db, TAG_CONFIG, TAG_SYNC_PROCEDURE


def _postgres_statements() -> list:
    c, p = TAG_CONFIG, TAG_SYNC_PROCEDURE
    return [
        f"""
CREATE OR REPLACE FUNCTION {p.name}({p.entity_id_param} integer, {p.item_names_param} text[])
RETURNS void AS $$
BEGIN
    PERFORM 1 FROM posts WHERE id = {p.entity_id_param} FOR UPDATE;

    INSERT INTO {c.items_table} ({c.item_name_column})
    SELECT DISTINCT unnest({p.item_names_param})
    ON CONFLICT ({c.item_name_column}) DO NOTHING;

    DELETE FROM {c.relations_table}
    WHERE {c.entity_id_column} = {p.entity_id_param}
      AND {c.item_id_column} NOT IN (
          SELECT id FROM {c.items_table} WHERE {c.item_name_column} = ANY({p.item_names_param})
      );

    INSERT INTO {c.relations_table} ({c.entity_id_column}, {c.item_id_column})
    SELECT {p.entity_id_param}, id FROM {c.items_table}
    WHERE {c.item_name_column} = ANY({p.item_names_param})
    ON CONFLICT ({c.entity_id_column}, {c.item_id_column}) DO NOTHING;
END;
$$ LANGUAGE plpgsql;
"""
    ]


def _mysql_statements() -> list:
    c, p = TAG_CONFIG, TAG_SYNC_PROCEDURE
    names_table = (
        f"JSON_TABLE({p.item_names_param}, '$[*]' "
        f"COLUMNS (item_name VARCHAR(50) PATH '$')) AS names"
    )
    return [
        f"DROP PROCEDURE IF EXISTS {p.name}",
        f"""
CREATE PROCEDURE {p.name}(IN {p.entity_id_param} INT, IN {p.item_names_param} JSON)
BEGIN
    SELECT id INTO @locked_post_id FROM posts WHERE id = {p.entity_id_param} FOR UPDATE;

    INSERT IGNORE INTO {c.items_table} ({c.item_name_column})
    SELECT DISTINCT names.item_name FROM {names_table};

    DELETE FROM {c.relations_table}
    WHERE {c.entity_id_column} = {p.entity_id_param}
      AND {c.item_id_column} NOT IN (
          SELECT items.id FROM {c.items_table} AS items
          JOIN {names_table} ON items.{c.item_name_column} = names.item_name
      );

    INSERT IGNORE INTO {c.relations_table} ({c.entity_id_column}, {c.item_id_column})
    SELECT {p.entity_id_param}, items.id FROM {c.items_table} AS items
    JOIN {names_table} ON items.{c.item_name_column} = names.item_name;
END
"""
    ]


async def main():
    """主函数"""
    dialect = engine.dialect.name
    print(f"开始创建 {TAG_SYNC_PROCEDURE.name} ({dialect})...")

    if dialect == "postgresql":
        statements = _postgres_statements()
    elif dialect in ("mysql", "mariadb"):
        statements = _mysql_statements()
    else:
        print(f"✗ {dialect} 不支持数据库端过程")
        await cleanup_db()
        return 1

    try:
        async with engine.begin() as conn:
            for statement in statements:
                await conn.exec_driver_sql(statement)
        print("✓ 创建成功！")
    except Exception as e:
        print(f"✗ 创建失败: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1
    finally:
        await cleanup_db()

    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
