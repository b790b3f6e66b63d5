"""服务目录、注册表与生命周期驱动。"""
