import os
import re
from ast import literal_eval
from collections.abc import MutableMapping
from typing import Optional, Union, cast

import toml
from box import Box

DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "config.toml")
INTERPOLATION_REGEX = re.compile(r"\${(.[^${}]*)}")
# sections whose values are taken literally; their `${user}` placeholders are
# substituted with the effective user when a connection is made
VERBATIM_SECTIONS = ("conf",)


class CompoundKey(tuple):
    pass


class Config(Box):
    """
    Nested hive-llap configuration with attribute access.
    """


def merge_dicts(d1: MutableMapping, d2: MutableMapping) -> MutableMapping:
    """
    Returns a copy of `d1` updated with `d2`, recursing into nested mappings.

    Args:
        - d1 (MutableMapping): base values
        - d2 (MutableMapping): overriding values

    Returns:
        - MutableMapping: the merged mapping
    """
    merged = d1.copy()
    for key, value in d2.items():
        if isinstance(merged.get(key), MutableMapping) and isinstance(
            value, MutableMapping
        ):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def dict_to_flatdict(dct: MutableMapping, parent: Optional[CompoundKey] = None) -> dict:
    """Flattens a nested mapping into `{CompoundKey: value}` pairs."""
    parent = parent or CompoundKey()
    items = []  # type: list
    for key, value in dct.items():
        compound = CompoundKey(parent + (key,))
        if isinstance(value, dict):
            items.extend(dict_to_flatdict(value, parent=compound).items())
        else:
            items.append((compound, value))
    return dict(items)


def flatdict_to_dict(dct: dict, dct_class: type = dict) -> MutableMapping:
    """Inverse of `dict_to_flatdict`."""
    result = dct_class()
    for key, value in dct.items():
        if isinstance(key, CompoundKey):
            section = result
            for part in key[:-1]:
                section = section.setdefault(part, dct_class())
            section[key[-1]] = value
        else:
            result[key] = value
    return result


def string_to_type(val: str) -> Union[bool, int, float, str]:
    """
    Casts a string coming from an environment variable into a Python value.

    "true"/"false" in any case become booleans; anything `ast.literal_eval`
    accepts is evaluated; everything else stays a string.
    """
    if val.upper() == "TRUE":
        return True
    elif val.upper() == "FALSE":
        return False

    try:
        return literal_eval(val)
    except (ValueError, SyntaxError, TypeError):
        return val


def interpolate_env_vars(env_var: str) -> Optional[Union[bool, int, float, str]]:
    """
    Expands env vars and `~` until the value stops changing (at most 10 passes).
    """
    if not env_var or not isinstance(env_var, str):
        return env_var

    for counter in range(10):
        interpolated = os.path.expanduser(os.path.expandvars(str(env_var)))
        if interpolated == env_var:
            # only values that actually went through expansion get type-cast,
            # so TOML typing is preserved otherwise
            if counter > 1:
                interpolated = string_to_type(interpolated)  # type: ignore
            return interpolated
        env_var = interpolated

    return None


def load_toml(path: str) -> dict:
    """
    Loads a TOML file into a plain dict.
    """
    return dict(toml.load(cast(str, interpolate_env_vars(path))))


def interpolate_config(config: dict, env_var_prefix: Optional[str] = None) -> Config:
    """
    Applies env var overrides and `${section.key}` references to a loaded config.

    Overrides use the `<PREFIX>__<SECTION>__<KEY>=value` convention. References
    to keys that do not exist in the config are left as they are. Values in
    `VERBATIM_SECTIONS` are neither expanded nor type-cast.
    """
    flat_config = dict_to_flatdict(config)
    verbatim = {
        key for key in flat_config if key and key[0] in VERBATIM_SECTIONS
    }

    if env_var_prefix:
        prefix = env_var_prefix + "__"
        for env_var, env_var_value in os.environ.items():
            if not env_var.startswith(prefix):
                continue
            option = env_var[len(prefix) :]
            if "__" not in option:
                continue
            flat_config[CompoundKey(option.lower().split("__"))] = string_to_type(
                cast(str, interpolate_env_vars(env_var_value))
            )

    for key, value in list(flat_config.items()):
        if key in verbatim:
            continue
        value = interpolate_env_vars(value)
        if isinstance(value, str):
            value = string_to_type(value)
        flat_config[key] = value

    # bounded so that self-referencing keys cannot loop forever
    keys_to_check = set(flat_config.keys()) - verbatim
    for _ in range(10):
        for key in list(keys_to_check):
            value = flat_config[key]
            match = INTERPOLATION_REGEX.search(value) if isinstance(value, str) else None
            if match is None:
                keys_to_check.discard(key)
                continue

            ref_key = CompoundKey(match.group(1).split("."))
            if ref_key not in flat_config:
                keys_to_check.discard(key)
                continue

            ref_value = flat_config[ref_key]
            if value == match.group(0):
                flat_config[key] = ref_value
            else:
                flat_config[key] = value.replace(match.group(0), str(ref_value), 1)

    return cast(Config, flatdict_to_dict(flat_config, dct_class=Config))


def validate_config(config: Config) -> None:
    """
    Rejects keys that would shadow `Config` methods.
    """
    invalid_keys = dir(Config)
    for key, value in config.items():
        if key in invalid_keys:
            raise ValueError('Invalid config key: "{}"'.format(key))
        if isinstance(value, MutableMapping):
            validate_config(value)


def load_configuration(
    path: str,
    user_config_path: Optional[str] = None,
    env_var_prefix: Optional[str] = None,
) -> Config:
    """
    Loads the default configuration, merges the user configuration on top and
    interpolates the result.

    Args:
        - path (str): the default TOML configuration file
        - user_config_path (str, optional): a user TOML file merged over the defaults
            when it exists
        - env_var_prefix (str, optional): prefix of env vars that override values

    Returns:
        - Config
    """
    default_config = load_toml(path)

    if user_config_path and os.path.isfile(str(interpolate_env_vars(user_config_path))):
        user_config = load_toml(user_config_path)
        default_config = cast(dict, merge_dicts(default_config, user_config))

    config = interpolate_config(default_config, env_var_prefix=env_var_prefix)
    validate_config(config)
    return config
