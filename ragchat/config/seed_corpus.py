"""
RagChat - Seed Corpus
======================
Static profile snippets that ship with the service and are embedded at
startup next to whatever lives in ``settings.DATA_RAW_DIR``.

Each entry is ``(chunk_id, text)``.  Ids must stay unique across the
seed set and the on-disk corpus (file names).
"""

SEED_CHUNKS: list[tuple[str, str]] = [
    ("cv-summary", "My name is John Doe, and I am a software engineer with 5 years of experience in full-stack web development, specializing in .NET, C#, and TypeScript. I have a strong background in building scalable microservices and user-friendly web applications."),
    ("cv-experience-companyA", "At Company A, I worked as a Senior Software Engineer for 3 years, leading the development of a new e-commerce platform using ASP.NET Core, React, and Azure. I improved system performance by 30%."),
    ("cv-experience-companyB", "Prior to Company A, I was a Software Developer at Company B, where I developed RESTful APIs in Node.js and managed MongoDB databases for a logistics application."),
    ("cv-skills", "My technical skills include: Languages (C#, TypeScript, JavaScript, Python), Frameworks (.NET, ASP.NET Core, Express.js, React, Angular), Databases (SQL Server, MongoDB, PostgreSQL), Cloud (Azure, AWS fundamentals), Tools (Docker, Git, Jira)."),
    ("hidden-hobby", "Outside of work, I enjoy hiking, playing chess, and learning about quantum computing. I'm currently training for a marathon."),
    ("hidden-future-plans", "I'm always looking for opportunities to contribute to open-source projects and am particularly interested in roles involving AI-powered applications."),
]
