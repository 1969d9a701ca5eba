# autobuild.py - 增量构建：只重新生成内容或依赖发生变化的页面

import argparse
import glob
import hashlib
import json
import os
import shutil
from typing import Any, Dict, List, Optional

import config
import generator
from parser import get_metadata_and_content

# 这些文件变化时强制重建全部页面 (渲染逻辑或模板变化)
CORE_DEPENDENCIES = [
    'callouts.py',
    'parser.py',
    'generator.py',
    'config.py',
    os.path.join('templates', config.PAGE_TEMPLATE),
]


def manifest_path() -> str:
    return os.path.join(config.BUILD_DIR, config.MANIFEST_FILE)


# --- Manifest 辅助函数 (增量构建所需) ---
def load_manifest() -> Dict[str, Any]:
    """加载上一次的构建清单文件。"""
    try:
        with open(manifest_path(), 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_manifest(manifest: Dict[str, Any]):
    """保存当前的构建清单文件。"""
    try:
        with open(manifest_path(), 'w', encoding='utf-8') as f:
            json.dump(manifest, f, ensure_ascii=False, indent=4)
    except IOError as e:
        print(f"Warning: cannot write build manifest {manifest_path()}: {e}")


def get_file_hash(filepath: str) -> Optional[str]:
    """计算文件的 SHA256 哈希值。文件不存在时返回 None。"""
    if not os.path.exists(filepath):
        return None
    sha256 = hashlib.sha256()
    with open(filepath, 'rb') as f:
        # 分块读取文件以处理大文件
        for byte_block in iter(lambda: f.read(4096), b""):
            sha256.update(byte_block)
    return sha256.hexdigest()


def check_core_dependencies(old_manifest: Dict[str, Any], new_manifest: Dict[str, Any]) -> bool:
    """返回核心依赖 (渲染代码、模板) 是否发生变化。"""
    script_dir = os.path.dirname(os.path.abspath(__file__))
    changed = False
    for core_file in CORE_DEPENDENCIES:
        current_hash = get_file_hash(os.path.join(script_dir, core_file))
        if current_hash is None:
            continue
        if current_hash != old_manifest.get('core', {}).get(core_file):
            changed = True
            print(f"   -> [CHANGE DETECTED] Core dependency {core_file} has changed.")
        new_manifest['core'][core_file] = current_hash
    return changed


def remove_page_output(slug: str):
    output_path = generator.page_output_path(slug)
    try:
        if slug == 'index':
            if os.path.exists(output_path):
                os.remove(output_path)
        else:
            shutil.rmtree(os.path.dirname(output_path), ignore_errors=True)
        print(f"   -> [CLEANUP] Deleted output for '{slug}'")
    except OSError as e:
        print(f"   -> [WARNING] Failed to clean up {output_path}: {e}")


def build_site(force: bool = False) -> List[str]:
    """构建全部页面，返回本次重新生成的源文件列表。"""
    print("\n" + "=" * 40)
    print("   STARTING BUILD PROCESS")
    print("=" * 40 + "\n")

    # -------------------------------------------------------------------------
    # [1/3] 准备工作 & 依赖检查
    # -------------------------------------------------------------------------
    print("[1/3] Preparing build directory and loading manifest...")
    os.makedirs(config.BUILD_DIR, exist_ok=True)

    old_manifest = {} if force else load_manifest()
    new_manifest: Dict[str, Any] = {'pages': {}, 'core': {}}
    core_changed = check_core_dependencies(old_manifest, new_manifest)

    # -------------------------------------------------------------------------
    # [2/3] 解析并生成页面
    # -------------------------------------------------------------------------
    print("\n[2/3] Rendering Markdown pages...")
    md_files = sorted(glob.glob(os.path.join(config.MARKDOWN_DIR, '*.md')))
    rebuilt: List[str] = []

    for md_file in md_files:
        relative_path = os.path.relpath(md_file, config.MARKDOWN_DIR).replace('\\', '/')
        current_hash = get_file_hash(md_file)
        old_item = old_manifest.get('pages', {}).get(relative_path, {})

        if not core_changed and current_hash == old_item.get('hash') and old_item.get('slug'):
            print(f"   -> [SKIPPED] {relative_path}")
            new_manifest['pages'][relative_path] = old_item
            continue

        metadata, _, content_html, toc_html = get_metadata_and_content(md_file)
        if not metadata:
            continue

        page = {**metadata, 'content_html': content_html, 'toc_html': toc_html}
        if generator.generate_page(page) is None:
            continue

        # slug 变化时清理旧输出
        if old_item.get('slug') and old_item['slug'] != page['slug']:
            remove_page_output(old_item['slug'])

        new_manifest['pages'][relative_path] = {
            'hash': current_hash,
            'slug': page['slug'],
            'callouts': page['callouts'],
        }
        rebuilt.append(relative_path)

    # 清理被删除的源文件
    for deleted_path in set(old_manifest.get('pages', {})) - set(new_manifest['pages']):
        if os.path.exists(os.path.join(config.MARKDOWN_DIR, deleted_path)):
            continue
        print(f"   -> [DELETED] Source file {deleted_path} removed.")
        slug = old_manifest['pages'][deleted_path].get('slug')
        if slug:
            remove_page_output(slug)

    # -------------------------------------------------------------------------
    # [3/3] 保存新的构建清单
    # -------------------------------------------------------------------------
    print("\n[3/3] Saving manifest...")
    save_manifest(new_manifest)
    print(f"   -> {len(rebuilt)} of {len(md_files)} pages rebuilt.")

    print("\nBUILD COMPLETE")
    return rebuilt


def main():
    parser = argparse.ArgumentParser(description="Build the site from Markdown sources.")
    parser.add_argument('--force', action='store_true', help="Ignore the manifest and rebuild every page")
    args = parser.parse_args()
    build_site(force=args.force)


if __name__ == '__main__':
    main()
