"""Declarative detection tables: signature → tag.

Manifest rules match a lowercase substring against the dependency
tokens extracted from one ecosystem's manifest. An empty signature tags
every manifest of that ecosystem. Code rules match keywords against
file content already fetched for review.

Adding an ecosystem means adding rows here and an extractor in
``tech_stack``; control flow stays as is.
"""

from __future__ import annotations

from dataclasses import dataclass

from stackscore.constants import TagCategory


@dataclass(frozen=True)
class ManifestSignature:
    ecosystem: str
    signature: str
    tag: str
    category: TagCategory


@dataclass(frozen=True)
class CodeSignature:
    keywords: tuple[str, ...]
    tag: str
    category: TagCategory
    match_all: bool = True

    def matches(self, content: str) -> bool:
        hits = (k in content for k in self.keywords)
        return all(hits) if self.match_all else any(hits)


_F = TagCategory.FRAMEWORK
_T = TagCategory.TOOL
_A = TagCategory.ARCHITECTURE

# Manifest basename → ecosystem
MANIFEST_ECOSYSTEMS: dict[str, str] = {
    "package.json": "npm",
    "requirements.txt": "pypi",
    "pyproject.toml": "pypi",
    "Cargo.toml": "cargo",
    "go.mod": "go",
    "composer.json": "composer",
    "pom.xml": "maven",
    "build.gradle": "gradle",
    "Gemfile": "rubygems",
    "Dockerfile": "docker",
}

MANIFEST_SIGNATURES: tuple[ManifestSignature, ...] = (
    # npm
    ManifestSignature("npm", "react", "React", _F),
    ManifestSignature("npm", "vue", "Vue.js", _F),
    ManifestSignature("npm", "angular", "Angular", _F),
    ManifestSignature("npm", "express", "Express.js", _F),
    ManifestSignature("npm", "next", "Next.js", _F),
    ManifestSignature("npm", "svelte", "Svelte", _F),
    ManifestSignature("npm", "webpack", "Webpack", _T),
    ManifestSignature("npm", "vite", "Vite", _T),
    ManifestSignature("npm", "typescript", "TypeScript", _T),
    ManifestSignature("npm", "eslint", "ESLint", _T),
    ManifestSignature("npm", "prettier", "Prettier", _T),
    ManifestSignature("npm", "jest", "Jest", _T),
    ManifestSignature("npm", "cypress", "Cypress", _T),
    # pypi
    ManifestSignature("pypi", "django", "Django", _F),
    ManifestSignature("pypi", "flask", "Flask", _F),
    ManifestSignature("pypi", "fastapi", "FastAPI", _F),
    ManifestSignature("pypi", "pandas", "Pandas", _T),
    ManifestSignature("pypi", "numpy", "NumPy", _T),
    ManifestSignature("pypi", "tensorflow", "TensorFlow", _F),
    ManifestSignature("pypi", "pytorch", "PyTorch", _F),
    ManifestSignature("pypi", "torch", "PyTorch", _F),
    ManifestSignature("pypi", "pytest", "pytest", _T),
    # cargo
    ManifestSignature("cargo", "", "Rust", _F),
    ManifestSignature("cargo", "tokio", "Tokio", _F),
    ManifestSignature("cargo", "actix", "Actix Web", _F),
    # go
    ManifestSignature("go", "", "Go Modules", _F),
    ManifestSignature("go", "gin-gonic", "Gin", _F),
    ManifestSignature("go", "gorilla", "Gorilla", _F),
    # composer
    ManifestSignature("composer", "laravel", "Laravel", _F),
    ManifestSignature("composer", "symfony", "Symfony", _F),
    ManifestSignature("composer", "phpunit", "PHPUnit", _T),
    # maven / gradle
    ManifestSignature("maven", "", "Maven", _T),
    ManifestSignature("maven", "spring-boot", "Spring Boot", _F),
    ManifestSignature("maven", "junit", "JUnit", _T),
    ManifestSignature("gradle", "", "Gradle", _T),
    ManifestSignature("gradle", "spring-boot", "Spring Boot", _F),
    ManifestSignature("gradle", "junit", "JUnit", _T),
    # rubygems
    ManifestSignature("rubygems", "rails", "Ruby on Rails", _F),
    ManifestSignature("rubygems", "sinatra", "Sinatra", _F),
    ManifestSignature("rubygems", "rspec", "RSpec", _T),
    # docker
    ManifestSignature("docker", "", "Docker", _T),
)

CODE_SIGNATURES: tuple[CodeSignature, ...] = (
    CodeSignature(("class ", "extends"), "Object-Oriented", _A),
    CodeSignature(("function", "=>"), "Functional Programming", _A),
    CodeSignature(("import", "from"), "Modular Architecture", _A),
    CodeSignature(("async", "await"), "Asynchronous Programming", _A),
    CodeSignature(
        ("useState", "useEffect"), "React Hooks", _F, match_all=False
    ),
    CodeSignature(
        ("@Component", "@Injectable"), "Angular", _F, match_all=False
    ),
    CodeSignature(
        ("@RestController", "@Service"), "Spring Boot", _F,
        match_all=False,
    ),
)


def signatures_for(ecosystem: str) -> tuple[ManifestSignature, ...]:
    return tuple(s for s in MANIFEST_SIGNATURES if s.ecosystem == ecosystem)
