"""Default configuration values and mirror presets."""

from .settings import DeskConfig, MirrorPreset

MIRROR_PRESETS: tuple[MirrorPreset, ...] = (
    MirrorPreset(
        id="official",
        name="Official",
        node_url="https://nodejs.org/dist/",
        npm_url="https://github.com/npm/cli/archive/",
        registry_url="https://registry.npmjs.org/",
        description="Node.js official distribution, slow from mainland China",
    ),
    MirrorPreset(
        id="taobao",
        name="npmmirror (Taobao)",
        node_url="https://npmmirror.com/mirrors/node/",
        npm_url="https://npmmirror.com/mirrors/npm/",
        registry_url="https://registry.npmmirror.com",
        description="npmmirror, recommended inside mainland China",
    ),
    MirrorPreset(
        id="huawei",
        name="Huawei Cloud",
        node_url="https://repo.huaweicloud.com/nodejs/",
        npm_url="https://repo.huaweicloud.com/npm/",
        registry_url="https://repo.huaweicloud.com/repository/npm/",
        description="Huawei Cloud mirror",
    ),
    MirrorPreset(
        id="tsinghua",
        name="Tsinghua University",
        node_url="https://mirrors.tuna.tsinghua.edu.cn/nodejs-release/",
        npm_url="https://mirrors.tuna.tsinghua.edu.cn/npm/",
        registry_url="https://mirrors.tuna.tsinghua.edu.cn/npm/",
        description="Tsinghua University open source mirror",
    ),
)


def get_default_config() -> DeskConfig:
    """
    Get default configuration.

    Returns:
        Default configuration
    """
    return DeskConfig()


def get_mirror_preset(preset_id: str) -> MirrorPreset | None:
    """Look up a mirror preset by id."""
    for preset in MIRROR_PRESETS:
        if preset.id == preset_id:
            return preset
    return None


def registry_for_npm_mirror(npm_mirror: str) -> str | None:
    """
    Resolve the npm registry to pass to ``npm install --registry``.

    Args:
        npm_mirror: Configured npm mirror URL (may be empty)

    Returns:
        Registry URL, or None to let npm use its own configuration
    """
    if not npm_mirror:
        return None

    for preset in MIRROR_PRESETS:
        if preset.npm_url == npm_mirror or preset.id in npm_mirror:
            return preset.registry_url

    if "registry.npmjs.org" in npm_mirror or "registry.npmmirror.com" in npm_mirror:
        return npm_mirror
    return None
