import os
import yaml


def load_config(section=None, file_path=None, optional=False):
    """
    加载 YAML 配置文件，并返回指定部分配置
    :param section: 配置块名称，例如 'relay'
    :param file_path: 配置文件相对路径（相对项目根目录），也可以是绝对路径
    :param optional: 为 True 时文件或配置块不存在返回 {}，而不是抛异常
    """
    config_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    config_file = os.path.join(config_path, file_path)
    if optional and not os.path.exists(config_file):
        return {}
    with open(config_file, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
        if section:
            if optional:
                return config.get(section) or {}
            return config[section]
        else:
            return config
