# SQL schema for hifztrack database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Students (curriculum position lives on the student row)
CREATE TABLE IF NOT EXISTS students (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    direction TEXT NOT NULL DEFAULT 'forward' CHECK(direction IN ('forward', 'backward')),
    current_chapter INTEGER NOT NULL DEFAULT 1 CHECK(current_chapter BETWEEN 1 AND 114),
    current_verse INTEGER NOT NULL DEFAULT 0 CHECK(current_verse >= 0),
    juz_memorized REAL NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Teachers
CREATE TABLE IF NOT EXISTS teachers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);

-- Halaqat (study circles); active_days: 0=Sunday .. 6=Saturday, NULL = every day
CREATE TABLE IF NOT EXISTS halaqat (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    active_days TEXT,
    is_active INTEGER NOT NULL DEFAULT 1
);

-- Student/halaqa/teacher enrollments
CREATE TABLE IF NOT EXISTS student_halaqat (
    student_id INTEGER NOT NULL,
    halaqa_id INTEGER NOT NULL,
    teacher_id INTEGER,
    is_active INTEGER NOT NULL DEFAULT 1,
    enrolled_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (student_id, halaqa_id),
    FOREIGN KEY (student_id) REFERENCES students (id) ON DELETE CASCADE,
    FOREIGN KEY (halaqa_id) REFERENCES halaqat (id) ON DELETE CASCADE,
    FOREIGN KEY (teacher_id) REFERENCES teachers (id) ON DELETE SET NULL
);

-- Progress log (append-only; number_lines frozen at insert)
CREATE TABLE IF NOT EXISTS progress_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_id INTEGER NOT NULL,
    halaqa_id INTEGER NOT NULL,
    teacher_id INTEGER,
    date TEXT NOT NULL,
    category TEXT NOT NULL CHECK(category IN ('memorization', 'revision', 'consolidation')),
    chapter_name TEXT NOT NULL,
    chapter_number INTEGER NOT NULL,
    from_verse INTEGER NOT NULL,
    to_verse INTEGER NOT NULL,
    number_lines REAL NOT NULL DEFAULT 0,
    quality TEXT NOT NULL DEFAULT 'good' CHECK(quality IN ('excellent', 'very_good', 'good', 'acceptable')),
    notes TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    CHECK (from_verse <= to_verse),
    FOREIGN KEY (student_id) REFERENCES students (id) ON DELETE CASCADE,
    FOREIGN KEY (halaqa_id) REFERENCES halaqat (id) ON DELETE CASCADE
);

-- Daily targets with running streak counters (one row per student)
CREATE TABLE IF NOT EXISTS student_targets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_id INTEGER NOT NULL UNIQUE,
    memorization_lines INTEGER,
    revision_pages INTEGER,
    consolidation_pages INTEGER,
    current_streak INTEGER NOT NULL DEFAULT 0 CHECK(current_streak >= 0),
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_streak_date TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    CHECK (longest_streak >= current_streak),
    FOREIGN KEY (student_id) REFERENCES students (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_progress_student_date ON progress_records (student_id, date, category);
CREATE INDEX IF NOT EXISTS idx_progress_date ON progress_records (date);
CREATE INDEX IF NOT EXISTS idx_progress_halaqa ON progress_records (halaqa_id);
CREATE INDEX IF NOT EXISTS idx_student_halaqat_halaqa ON student_halaqat (halaqa_id, is_active);
CREATE INDEX IF NOT EXISTS idx_student_halaqat_teacher ON student_halaqat (teacher_id, is_active);
CREATE INDEX IF NOT EXISTS idx_student_targets_streak ON student_targets (current_streak DESC, longest_streak DESC);
"""
