from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True, "pool_recycle": 3600}


# 创建数据库引擎
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # 在DEBUG模式下输出SQL语句
    **_engine_kwargs(settings.DATABASE_URL)
)

# 创建SessionLocal类
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"数据库会话错误: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection() -> bool:
    """检查数据库连接是否正常"""
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        return True
    except Exception as e:
        logger.error(f"数据库连接检查失败: {e}")
        return False


def create_tables(bind=None):
    """创建所有表"""
    from app.models.base import Base
    from app.models.user import User
    from app.models.user_language import UserLanguage
    from app.models.language import Language
    from app.models.recording import Recording
    from app.models.feedback import Feedback
    from app.models.notification import Notification
    from app.models.admin_settings import AdminSettings
    from app.models.session import RecordingSession

    Base.metadata.create_all(bind=bind or engine)


def init_db():
    """初始化数据库表"""
    try:
        create_tables()
        logger.info("数据库表初始化完成")

        if settings.SEED_DEFAULT_LANGUAGES:
            db = SessionLocal()
            try:
                init_default_languages(db)
            finally:
                db.close()

    except Exception as e:
        logger.error(f"数据库初始化失败: {e}")
        raise


# 默认语言及示例句子
DEFAULT_LANGUAGES = [
    {"name": "Hindi", "sentences": ["नमस्ते, आप कैसे हैं?", "मैं अच्छा हूँ, धन्यवाद।", "यह एक परीक्षण वाक्य है।"]},
    {"name": "Tamil", "sentences": ["வணக்கம், எப்படி இருக்கிறீர்கள்?", "நான் நன்றாக இருக்கிறேன், நன்றி.", "இது ஒரு சோதனை வாக்கியம்."]},
    {"name": "Telugu", "sentences": ["నమస్కారం, మీరు ఎలా ఉన్నారు?", "నేను బాగున్నాను, ధన్యవాదాలు.", "ఇది పరీక్ష వాక్యం."]},
    {"name": "Kannada", "sentences": ["ನಮಸ್ಕಾರ, ನೀವು ಹೇಗಿದ್ದೀರಿ?", "ನಾನು ಚೆನ್ನಾಗಿದ್ದೇನೆ, ಧನ್ಯವಾದಗಳು.", "ಇದು ಪರೀಕ್ಷೆಯ ವಾಕ್ಯವಾಗಿದೆ."]},
    {"name": "Malayalam", "sentences": ["നമസ്കാരം, നിങ്ങൾ എങ്ങനെ ഉണ്ട്?", "എനിക്ക് നന്നായി ഉണ്ട്, നന്ദി.", "ഇത് ഒരു പരീക്ഷണ വാക്യമാണ്."]},
    {"name": "English", "sentences": ["Hello, how are you?", "I am fine, thank you.", "This is a test sentence."]},
    {"name": "Bengali", "sentences": ["নমস্কার, আপনি কেমন আছেন?", "আমি ভালো আছি, ধন্যবাদ।", "এটি একটি পরীক্ষামূলক বাক্য।"]},
    {"name": "Marathi", "sentences": ["नमस्कार, तुम्ही कसे आहात?", "मी ठीक आहे, धन्यवाद.", "हे एक चाचणी वाक्य आहे."]},
]


def init_default_languages(db: Session) -> int:
    """
    初始化语言表数据
    只有在语言表为空时才写入默认语言
    """
    from app.repositories.language_repository import LanguageRepository

    logger.info("开始初始化语言表数据")
    language_repo = LanguageRepository(db)

    if language_repo.count() > 0:
        logger.info("语言表已有数据，跳过初始化")
        return 0

    try:
        for language_data in DEFAULT_LANGUAGES:
            language_repo.create(
                name=language_data["name"],
                sentences=language_data["sentences"]
            )
            logger.debug(f"添加语言: {language_data['name']}")
        logger.info(f"语言表数据初始化完成，新增{len(DEFAULT_LANGUAGES)}种语言")
        return len(DEFAULT_LANGUAGES)
    except Exception as e:
        db.rollback()
        logger.error(f"初始化语言表数据失败: {e}")
        raise
