"""Markdown templates for the command replies.

Section headers, emoji markers and field order are part of the reply
contract; the output is deterministic for a given snapshot.
"""

from __future__ import annotations

from typing import List, Sequence

from lib.contracts.identity import Identity
from lib.utils.helpers import format_thousands

from .models import FaqEntry, Mission, MissionsSnapshot, PointsSnapshot, TierSnapshot, UpgradeSnapshot

KEYCAP = "\ufe0f"

REQUIREMENT_EMOJI = {
    "content": "📸",
    "sales": "💰",
    "membership": "📅",
    "mentoring": "🤝",
}


def _missions(missions: Sequence[Mission]) -> str:
    out = ""
    for index, mission in enumerate(missions, start=1):
        out += f"### {index}. {mission.title}\n"
        out += f"{mission.description}\n\n"
        out += f"- 🎁 **Reward:** {mission.reward}\n"
        out += f"- ⏰ **Deadline:** {mission.deadline}\n\n"
    return out


def render_misi(snapshot: MissionsSnapshot) -> str:
    out = "# 🎯 MISI AKTIF HPZ CREW\n\n"
    out += "## 📅 Misi Mingguan\n\n"
    out += _missions(snapshot.weekly)
    out += "## 📆 Misi Bulanan\n\n"
    out += _missions(snapshot.monthly)
    out += "---\n\n"
    out += "💡 **Tips:** Gunakan hashtag #RideWithPride untuk memperbesar peluang approval!\n\n"
    out += "📸 Upload konten berkualitas dan ikuti panduan yang sudah ditentukan ya! 🏍️✨"
    return out


def render_poinku(snapshot: PointsSnapshot) -> str:
    out = "# 💰 STATS POIN KAMU\n\n"
    out += f"- 💎 **Total Poin:** {format_thousands(snapshot.points)}\n"
    out += f"- 🏆 **Tier Saat Ini:** {snapshot.tier}\n"
    out += f"- 📈 **Poin ke Tier Berikutnya:** {snapshot.points_to_next_tier} poin lagi\n\n"

    out += "## 🕐 Aktivitas Terakhir\n\n"
    for index, activity in enumerate(snapshot.recent_activities, start=1):
        out += f"{index}. **+{activity.points} poin** - {activity.description} *({activity.date})*\n"

    out += "\n## 💡 Cara Dapat Poin Tambahan\n\n"
    out += "- Upload konten #RideWithPride: **+50 poin**\n"
    out += "- Ajak teman: **+100 poin**\n"
    out += "- Ikut challenge: **+30 poin**\n"
    out += "- Generate sale: **+150 poin**\n\n"
    out += "---\n\n"
    out += "🔥 Terus tingkatkan kontribusimu untuk naik tier! 🚀"
    return out


def render_tierku(snapshot: TierSnapshot) -> str:
    current, nxt = snapshot.current, snapshot.next
    out = f"# {current.color} TIER KAMU: {current.name}\n\n"
    out += f"- 💎 **Poin Saat Ini:** {format_thousands(snapshot.current_points)}\n"
    if nxt is not None:
        out += f"- 📊 **Progress ke {nxt.name}:** {snapshot.progress_percentage:.1f}%\n"
    else:
        out += f"- 📊 **Progress:** {snapshot.progress_percentage:.1f}% (tier maksimal)\n"
    out += f"- 🎯 **Butuh:** {snapshot.points_needed} poin lagi\n\n"

    out += f"## ✨ Benefit {current.name}\n\n"
    for index, benefit in enumerate(current.benefits, start=1):
        out += f"{index}. {benefit}\n"

    if nxt is not None:
        out += f"\n## 🚀 Benefit {nxt.name} (Coming Soon)\n\n"
        for index, benefit in enumerate(nxt.benefits[:3], start=1):
            out += f"{index}. {benefit}\n"
        if len(nxt.benefits) > 3:
            out += f"\n... dan **{len(nxt.benefits) - 3} benefit lainnya!**\n\n"
    else:
        out += "\n## 🎉 Kamu Sudah di Tier Tertinggi!\n\n"
        out += (
            "Selamat! Kamu sudah mencapai tier maksimal HPZ Crew. "
            "Terus pertahankan kontribusimu! 🏆\n\n"
        )

    out += "## 💡 Tips Cepat Naik Tier\n\n"
    out += "- Fokus pada konten berkualitas tinggi\n"
    out += "- Ajak teman-teman kamu bergabung\n"
    out += "- Ikuti semua challenge mingguan\n"
    out += "- Ciptakan konten viral untuk bonus engagement!\n\n"
    out += "---\n\n"
    out += "🔥 Kamu sudah di jalan yang benar! Tetap konsisten! 🏍️✨"
    return out


def render_faq(entries: Sequence[FaqEntry]) -> str:
    blocks: List[str] = []
    for index, entry in enumerate(entries, start=1):
        answer = entry.answer.strip()
        sep = "\n" if "\n" in answer else " "
        blocks.append(f"{index}{KEYCAP}\nQ: {entry.question}\nA:{sep}{answer}")
    return "# ❓ FAQ (Pertanyaan Dasar)\n\n" + "\n\n".join(blocks) + "\n"


def render_upgrade(snapshot: UpgradeSnapshot) -> str:
    out = "# 🚀 UPGRADE TIER INFORMATION\n\n"
    out += f"- 📍 **Posisi Kamu:** {snapshot.current_tier}\n"
    out += f"- 🎯 **Target:** {snapshot.next_tier}\n"
    out += f"- 💎 **Poin Saat Ini:** {snapshot.current_points}\n"
    out += f"- 🎪 **Poin Dibutuhkan:** {snapshot.needed_points}\n"
    out += f"- 📈 **Kekurangan Poin:** {snapshot.point_gap} poin\n\n"

    out += f"## 📋 Requirements {snapshot.next_tier}\n\n"
    for key, value in snapshot.requirements.model_dump().items():
        out += f"- {REQUIREMENT_EMOJI.get(key, '🤝')} {value}\n"

    out += "\n## 💡 Strategi Upgrade Cepat\n\n"
    out += "1. **Konten Berkualitas:** Upload 3 konten approved lagi\n"
    out += "2. **Affiliate Sales:** Fokus pada 2 penjualan lagi\n"
    out += "3. **Mentoring:** Bantu 2 member baru (bonus poin +50)\n"
    out += "4. **Engagement:** Tingkatkan engagement rate diatas 3%\n\n"

    out += "## 🔥 Tips Tambahan\n\n"
    out += "- Gunakan hashtag #RideWithPride di semua konten\n"
    out += "- Share konten di jam prime time (19:00-21:00)\n"
    out += "- Kolaborasi dengan member lain untuk boost engagement\n"
    out += "- Ikuti semua challenge mingguan tanpa terkecuali!\n\n"
    out += "---\n\n"
    out += "💪 Kamu sudah sangat dekat! Tetap semangat! 🏍️✨"
    return out


def render_hubungiadmin(identity: Identity) -> str:
    out = "# 📞 HUBUNGI ADMIN HPZ CREW\n\n"
    out += "🔥 **Butuh bantuan sekarang?** Kami siap membantu kamu!\n\n"

    out += "## 📧 Email Support\n\n"
    out += "- **Email:** crew@hpztv.com\n"
    out += "- **Respon:** 1x24 jam\n"
    out += "- **Subject:** [BANTUAN] - Isi masalah kamu\n\n"

    out += "## 💬 Discord Community\n\n"
    out += "- **Server:** discord.gg/hpzcrew\n"
    out += "- **Channel:** #support\n"
    out += "- **Respon:** Langsung (jika admin online)\n\n"

    out += "## 📱 Social Media\n\n"
    out += "- **Instagram:** @hpztv.official (DM)\n"
    out += "- **Respon:** 2-4 jam (jam kerja)\n\n"

    out += "## 🚨 Urgent Matters\n\n"
    out += "Jika terkait keamanan akun atau keamanan data:\n\n"
    out += f"- Sertakan user ID: `{identity.id}`\n"
    out += "- Email ke: emergency@hpztv.com\n\n"

    out += "## 📝 Info Yang Dibutuhkan\n\n"
    out += f"1. **User ID:** `{identity.id}`\n"
    out += f"2. **Email:** {identity.email}\n"
    out += "3. **Deskripsi masalah** (detail)\n"
    out += "4. **Screenshot** (jika ada error)\n\n"

    out += "## ⏰ Jam Operasional\n\n"
    out += "- **Senin - Jumat:** 09:00 - 18:00 WIB\n"
    out += "- **Sabtu:** 09:00 - 15:00 WIB\n"
    out += "- **Minggu & Libur:** Emergency only\n\n"

    out += "## 💡 Quick Response\n\n"
    out += "Untuk pertanyaan umum, coba gunakan perintah:\n\n"
    out += "- **/faq** - Pertanyaan yang sering diajukan\n"
    out += "- **/misi** - Info misi aktif\n"
    out += "- **/poinku** - Cek poin dan progress\n\n"
    out += "---\n\n"
    out += "🤝 Tim HPZ Crew selalu siap membantu perjalanan kamu di komunitas! 🏍️✨"
    return out
