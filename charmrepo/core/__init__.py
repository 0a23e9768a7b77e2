"""charmrepo 核心：配置、异常、charm store 访问"""
