"""Demo catalog inserted into an empty store on first start."""

import json
import logging

from toolshelf.database import QueryExecutor, TransactionScope

logger = logging.getLogger(__name__)

# (name, description, icon, sort_order)
DEMO_CATEGORIES = [
    ("Developer Tools", "Programming and development tools", "🛠️", 1),
    ("Design Assets", "Design resources and assets", "🎨", 2),
    ("Office", "Office and productivity software", "📊", 3),
    ("Learning", "Tutorials, documentation and courses", "📚", 4),
    ("Multimedia", "Audio and video tools", "🎵", 5),
    ("System Tools", "System administration and tuning", "⚙️", 6),
    ("Data Analysis", "Data analysis and processing", "📈", 7),
    ("File Utilities", "File management and conversion", "📁", 8),
    ("Text Tools", "Text editing and processing", "📝", 9),
    ("Time & Calendar", "Time management and scheduling", "⏰", 10),
    ("Everyday", "Everyday utilities", "🏠", 11),
    ("Networking", "Network testing and management", "🌐", 12),
    ("Calculators", "Calculators and math tools", "🧮", 13),
    ("Creative", "Creative and design tools", "🎭", 14),
    ("General", "Other general-purpose utilities", "🔧", 15),
]

# (title, description, category name, file_type, file_size, original_filename, download_url, password, tags)
DEMO_RESOURCES = [
    ("Visual Studio Code", "Free source code editor from Microsoft", "Developer Tools",
     "exe", 85_000_000, "vscode-setup.exe", "https://code.visualstudio.com/download", None,
     ["editor", "development", "free"]),
    ("Photoshop 2024", "Professional image editing software", "Design Assets",
     "exe", 2_500_000_000, "photoshop-2024.exe", "https://example.com/ps2024", "abc123",
     ["image editing", "design", "adobe"]),
    ("Microsoft Office 365", "Microsoft office suite", "Office",
     "exe", 3_200_000_000, "office365-setup.exe", "https://example.com/office365", "def456",
     ["office", "documents", "spreadsheets"]),
    ("React Tutorial", "Complete React front-end development tutorial", "Learning",
     "pdf", 15_000_000, "react-tutorial.pdf", "https://example.com/react-tutorial", None,
     ["react", "frontend", "tutorial"]),
    ("Audacity", "Free audio editing software", "Multimedia",
     "exe", 45_000_000, "audacity-setup.exe", "https://audacityteam.org/download/", None,
     ["audio", "editing", "free"]),
]


async def _count(executor: QueryExecutor, table: str) -> int:
    rows = await executor.execute(f"SELECT COUNT(*) AS count FROM {table}")
    return rows[0]["count"]


async def seed_demo_catalog(executor: QueryExecutor) -> None:
    """Insert demo categories / resources into whichever table is still empty."""
    seed_categories = await _count(executor, "categories") == 0
    seed_resources = await _count(executor, "resources") == 0
    if not (seed_categories or seed_resources):
        return

    async def work(tx: TransactionScope) -> None:
        if seed_categories:
            for name, description, icon, sort_order in DEMO_CATEGORIES:
                await tx.execute(
                    "INSERT INTO categories (name, description, icon, sort_order) VALUES (?, ?, ?, ?)",
                    [name, description, icon, sort_order],
                )

        if seed_resources:
            rows = await tx.execute("SELECT id, name FROM categories WHERE status = 'active'")
            category_ids = {row["name"]: row["id"] for row in rows}
            for (title, description, category, file_type, file_size,
                 filename, url, password, tags) in DEMO_RESOURCES:
                await tx.execute(
                    "INSERT INTO resources (title, description, category_id, file_type, file_size, "
                    "original_filename, download_url, download_password, tags) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [title, description, category_ids.get(category), file_type, file_size,
                     filename, url, password, json.dumps(tags)],
                )

    await executor.run_in_transaction(work)
    logger.info(
        "Demo data seeded | categories=%s | resources=%s",
        len(DEMO_CATEGORIES) if seed_categories else 0,
        len(DEMO_RESOURCES) if seed_resources else 0,
    )
